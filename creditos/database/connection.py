import logging
from typing import Optional

from supabase import Client

from creditos.core.config import settings
from creditos.core.supabase_client import get_supabase_client
from creditos.database.gateway import SupabaseGateway
from creditos.database.storage import ExpedienteStorage

logger = logging.getLogger(__name__)

# Process-wide collaborators, created once by init_db()
supabase: Optional[Client] = None
gateway: Optional[SupabaseGateway] = None
storage: Optional[ExpedienteStorage] = None


def init_db() -> SupabaseGateway:
    global supabase, gateway, storage
    try:
        logger.info("Creating Supabase client...")
        supabase = get_supabase_client()
        gateway = SupabaseGateway(supabase)
        storage = ExpedienteStorage(supabase, settings.EXPEDIENTES_BUCKET)
        logger.info("Supabase gateway and storage bucket '%s' ready", settings.EXPEDIENTES_BUCKET)
        return gateway
    except RuntimeError as e:
        logger.error(f"Configuration error: {str(e)}")
        raise
    except Exception as e:
        logger.error(f"Supabase initialization failed: {str(e)}")
        raise


def get_supabase() -> Client:
    """Get the initialized Supabase client"""
    if supabase is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return supabase


def get_gateway() -> SupabaseGateway:
    """Get the initialized gateway instance"""
    if gateway is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return gateway


def get_document_store() -> ExpedienteStorage:
    """Get the initialized expediente storage instance"""
    if storage is None:
        raise RuntimeError("Storage not initialized. Call init_db() first.")
    return storage
