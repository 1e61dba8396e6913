"""Paystack checkout and verification"""
