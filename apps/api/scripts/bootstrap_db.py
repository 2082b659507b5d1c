"""Create database schema and seed demo accounts and listings for development."""
from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

from biva_api.core.config import settings
from biva_api.core.logging import setup_logging
from biva_api.db.session import SessionLocal, engine
from biva_api.models.base import Base
from biva_api.models.property import (
	ApprovalStatus,
	AvailabilityStatus,
	Property,
	PropertyCategory,
	TransactionType,
)
from biva_api.models.user import User, UserRole

logger = logging.getLogger("biva_api.bootstrap")

# Credentials are issued by the identity provider; local accounts carry an unusable hash.
UNUSABLE_PASSWORD = "!"

USERS = [
	{
		"id": "user-admin",
		"full_name": "Administração Biva",
		"phone": "+244-923-000000",
		"email": "admin@biva.ao",
		"roles": [UserRole.ADMIN.value],
		"bi": "000000000LA000",
	},
	{
		"id": "user-joana",
		"full_name": "Joana Mbala",
		"phone": "+244-923-111222",
		"email": "joana.mbala@example.com",
		"roles": [UserRole.OWNER.value],
		"bi": "004512345LA041",
		"address": "Rua Rainha Ginga 12, Ingombota, Luanda",
	},
	{
		"id": "user-pedro",
		"full_name": "Pedro Cassoma",
		"phone": "+244-924-333444",
		"email": "pedro.cassoma@example.com",
		"roles": [UserRole.BROKER.value],
		"bi": None,
	},
	{
		"id": "user-ana",
		"full_name": "Ana Tchissola",
		"phone": "+244-925-555666",
		"email": "ana.tchissola@example.com",
		"roles": [UserRole.CLIENT.value],
		"bi": None,
	},
]

PROPERTIES = [
	{
		"id": "prop-talatona-t3",
		"owner_id": "user-joana",
		"title": "Apartamento T3 no Talatona",
		"description": "Condomínio fechado com piscina e gerador.",
		"category": PropertyCategory.APARTMENT,
		"transaction_type": TransactionType.RENT,
		"price": Decimal("450000"),
		"provincia": "Luanda",
		"municipio": "Talatona",
		"bairro": "Talatona",
		"bedrooms": 3,
		"bathrooms": 2,
		"living_rooms": 1,
		"kitchens": 1,
		"area": 140,
		"amenities": ["piscina", "gerador", "segurança"],
		"images": ["https://picsum.photos/seed/talatona/800/600"],
		"featured": True,
		"approval_status": ApprovalStatus.APPROVED,
	},
	{
		"id": "prop-viana-moradia",
		"owner_id": "user-joana",
		"title": "Moradia V4 em Viana",
		"description": "Quintal amplo e garagem para dois carros.",
		"category": PropertyCategory.HOUSE,
		"transaction_type": TransactionType.SALE,
		"price": Decimal("85000000"),
		"provincia": "Luanda",
		"municipio": "Viana",
		"bairro": "Zango",
		"bedrooms": 4,
		"bathrooms": 3,
		"living_rooms": 2,
		"kitchens": 1,
		"area": 320,
		"amenities": ["garagem", "quintal"],
		"images": ["https://picsum.photos/seed/viana/800/600"],
		"approval_status": ApprovalStatus.APPROVED,
	},
	{
		"id": "prop-benguela-loja",
		"owner_id": "user-pedro",
		"title": "Loja comercial na baixa de Benguela",
		"category": PropertyCategory.COMMERCIAL,
		"transaction_type": TransactionType.RENT,
		"price": Decimal("300000"),
		"provincia": "Benguela",
		"municipio": "Benguela",
		"area": 90,
		"images": ["https://picsum.photos/seed/benguela/800/600"],
		"approval_status": ApprovalStatus.PENDING,
	},
]


async def create_schema() -> None:
	"""Create the database schema if it does not already exist."""

	async with engine.begin() as conn:
		await conn.run_sync(Base.metadata.create_all)


async def seed_users() -> None:
	"""Insert or refresh demo accounts."""

	async with SessionLocal() as session:
		async with session.begin():
			for user_data in USERS:
				user = await session.get(User, user_data["id"])
				if user is None:
					session.add(User(password_hash=UNUSABLE_PASSWORD, **user_data))
					continue
				for name, value in user_data.items():
					setattr(user, name, value)


async def seed_properties() -> None:
	"""Insert demo listings; existing rows keep their workflow state."""

	async with SessionLocal() as session:
		async with session.begin():
			for prop_data in PROPERTIES:
				if await session.get(Property, prop_data["id"]) is not None:
					continue
				session.add(
					Property(
						availability_status=AvailabilityStatus.AVAILABLE,
						rejection_acknowledged=False,
						**prop_data,
					)
				)


async def main() -> None:
	setup_logging(settings.log_level, settings.log_format)
	await create_schema()
	await seed_users()
	await seed_properties()
	logger.info("Database schema ensured and demo data seeded.")


if __name__ == "__main__":
	asyncio.run(main())
