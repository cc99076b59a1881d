"""Domain layer for networth application.

Services are imported from their own modules (``networth.domain.account`` and
so on); the database layer imports ``networth.domain.entities`` and must not
pull them in.
"""
