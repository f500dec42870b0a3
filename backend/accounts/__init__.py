# accounts/__init__.py
"""
Accounts app - Authentication, users and company profile.

This app provides:
- User: Custom user model with an ADMIN/OPERATOR/VIEWER role
- Company: Company master data
- ActorContext: Authorization context utilities
"""
