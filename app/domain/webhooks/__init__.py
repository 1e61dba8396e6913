"""Paystack webhooks and reconciliation"""
