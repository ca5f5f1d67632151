"""
Inkwell Backend — Services Layer
==================================

Service Inventory:
    - PasswordHasher:   bcrypt hash/verify
    - TokenService:     JWT issue/verify
    - SessionTransport: session cookie set/clear/read
    - authorization:    author-only mutation gate
    - CoverStorage:     local / remote / disabled cover image storage
    - AuthService:      registration and login
    - PostService:      post create/update/list/get

All of them are built once per app in create_app() from explicit Settings.
"""
