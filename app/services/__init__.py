"""
Services layer - Business logic goes here.
Keep services focused on specific domains (cleanup requests, users, stats).

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- Services validate before they write and raise CleanupAppError subclasses
- Routes translate nothing; the app-level handlers render errors
"""
