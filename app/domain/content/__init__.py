"""Creator content"""
