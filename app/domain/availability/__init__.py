"""Creator availability calendar"""
