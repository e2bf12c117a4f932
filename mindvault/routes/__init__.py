# Routes package init
"""
MindVault Backend — API Routes Package
========================================

Route Inventory:
    - journal.py:   /api/journal            (CRUD + search)
    - chat.py:      /api/chat/sessions      (sessions and messages)
    - wellness.py:  /api/wellness           (daily check, streak, history)
    - health.py:    GET /health

Routes stay THIN: read the request, call a service, shape the response.
Encryption never happens here; handlers only ever see plaintext.
"""
