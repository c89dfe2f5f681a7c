"""WSGI entrypoint for deploying the calculator API behind Passenger."""

from incometax.backend.app import create_app

# Passenger expects a module-level variable named ``application``.
application = create_app()
