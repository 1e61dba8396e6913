"""Creator onboarding, profiles, plans and links"""
