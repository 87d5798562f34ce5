"""Minimal FastAPI application for the ParentDoctor child-health chat"""
import logging
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables
load_dotenv()

from config import settings
from api.routes import chat
from core.database import db

# Setup logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="ParentDoctor Chat API",
    version="1.0.0",
    description="Child-health conversation engine"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "completion_service": "configured" if settings.completion_enabled else "fallback",
        "profile_store": "postgres" if db.configured else "memory",
    }


app.include_router(chat.router, prefix="/api", tags=["chat"])


@app.on_event("shutdown")
async def shutdown_event():
    """Close pooled database connections"""
    db.close_all_connections()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
