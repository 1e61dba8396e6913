"""Scheduled background services"""
