"""Adapters for the external collaborators.

- store: Supabase tables (folders, markers, users, friendships, shares, preferences)
- media: Cloudinary image hosting
- identity: Google OAuth token exchange and userinfo
"""
