# walletwise/db.py
import logging

import httpx
from flask import current_app, g, request
from postgrest.exceptions import APIError
from supabase import create_client

from .errors import CollaboratorError

logger = logging.getLogger("walletwise")


def new_client():
    """Fresh Supabase client for the configured project"""
    url = current_app.config.get("SUPABASE_URL")
    key = current_app.config.get("SUPABASE_ANON_KEY")
    if not url or not key:
        raise CollaboratorError("Supabase is not configured")
    factory = current_app.config.get("SUPABASE_CLIENT_FACTORY") or create_client
    return factory(url, key)


def bearer_token():
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_db():
    """Client acting as the calling user, so row-level security applies"""
    db = getattr(g, "_database", None)
    if db is None:
        db = new_client()
        token = bearer_token()
        if token:
            db.postgrest.auth(token)
        g._database = db
    return db


def get_auth_client():
    """Anonymous client used for sign-in / sign-up round trips"""
    client = getattr(g, "_auth_client", None)
    if client is None:
        client = g._auth_client = new_client()
    return client


def execute(query, action):
    """Run a PostgREST builder, turning transport/API failures into CollaboratorError"""
    try:
        return query.execute()
    except (APIError, httpx.HTTPError) as e:
        logger.error(f"Supabase call failed ({action}): {e}")
        raise CollaboratorError(f"Failed to {action}") from e
