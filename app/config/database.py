"""
Database configuration and connection management for MongoDB
"""
from motor.motor_asyncio import AsyncIOMotorClient
from typing import Optional
import logging
import os
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

class DatabaseConfig:
    """MongoDB database configuration"""

    def __init__(self):
        self.MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
        self.DATABASE_NAME = os.getenv("DATABASE_NAME", "nebula_forms")
        self.client: Optional[AsyncIOMotorClient] = None
        self.database = None

    async def connect_db(self):
        """Connect to MongoDB"""
        try:
            self.client = AsyncIOMotorClient(self.MONGO_URI)
            self.database = self.client[self.DATABASE_NAME]
            # Test connection
            await self.client.admin.command('ping')
            print(f"✅ Connected to MongoDB: {self.DATABASE_NAME}")
        except Exception as e:
            logger.error("❌ Error connecting to MongoDB: %s", e)
            raise

    async def close_db(self):
        """Close MongoDB connection"""
        if self.client:
            self.client.close()
            print("✅ MongoDB connection closed")

    def get_collection(self, collection_name: str):
        """Get a specific collection"""
        if self.database is None:
            raise Exception("Database not connected")
        return self.database[collection_name]

# Global database instance
db_config = DatabaseConfig()

# Collection names
class Collections:
    USERS = "users"
    FORMS = "forms"
