"""
Shared Kernel

Domain errors, money arithmetic and the infrastructure glue (exception
handler, locking helpers, strict serializers) used by every app.
"""
