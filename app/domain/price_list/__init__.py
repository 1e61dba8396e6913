"""Bookable services"""
