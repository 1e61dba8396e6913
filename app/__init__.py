"""Odim creator platform API"""
