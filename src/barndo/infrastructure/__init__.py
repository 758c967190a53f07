"""Infrastructure layer - Database and catalog clients"""
