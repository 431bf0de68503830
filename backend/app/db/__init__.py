"""Database seeding for fresh installs"""
