"""
Service layer for Lightsail and Cloudflare calls.

Handlers validate requests and pick the operation; these services talk to
the providers and own the multi-step workflows.
"""
