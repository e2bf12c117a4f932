# Services package init
"""
MindVault Backend — Services Layer
====================================

Service Inventory:
    - FieldCipher: protect()/reveal() for single string fields
    - JournalService: journal entries
    - ChatService: chat sessions and messages
    - WellnessService: daily wellness checks

The persistence mapping is explicit: each service calls protect() on the
sensitive fields it writes and reveal() on the ones it reads. Models and
routes never encrypt anything themselves.
"""
