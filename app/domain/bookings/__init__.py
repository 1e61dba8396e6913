"""Escrowed service bookings and tracking"""
