"""
Services layer - Business logic goes here.
Keep services focused on specific domains (issues, comments, teams).

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- Services raise urbanfix.core.errors exceptions; routes never build errors themselves
- Role and ownership checks are service-level decisions
"""
