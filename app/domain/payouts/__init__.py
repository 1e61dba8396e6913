"""Creator payouts"""
