"""
Notes API — Services Layer
============================

Service Inventory:
    - NoteStore: insert / get / update / delete against the notes table
"""
