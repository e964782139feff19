"""
api/deps.py — Route Dependencies
=================================
Gives routes the chain services built in main.py's lifespan.
"""

from fastapi import Request

from modules.kyc import KycServices


def get_services(request: Request) -> KycServices:
    return request.app.state.services
