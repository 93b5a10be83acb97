# Routes package init
"""
Mindtrail Backend - API Routes Package
=======================================

What:  HTTP route handlers. Each module binds one concern to a router;
       business rules live in the services.

Route Inventory:
    - health.py:   GET  /                    (plaintext greeting)
                   GET  /health              (dependency status)
    - auth.py:     POST /auth/register, POST /auth/login, GET /auth/me
    - forms.py:    POST /api/save-answers, /api/journal, /api/save-muscles,
                   /api/story-answers, /api/savePostExperience, /api/saveAudio
    - profile.py:  POST /api/profile
    - policy.py:   access level of every route above, checked at startup
"""
