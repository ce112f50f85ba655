"""
Notes API — Routes Package
============================

Route Inventory:
    - health.py:  GET    /v1/healthcheck
    - notes.py:   POST   /v1/notes
                  GET    /v1/notes/{id}
                  PUT    /v1/notes/{id}
                  DELETE /v1/notes/{id}

Handlers stay thin: decode, validate, call the note store, encode.
"""
