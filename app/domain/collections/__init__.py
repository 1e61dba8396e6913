"""Content collections, sections and paid access"""
