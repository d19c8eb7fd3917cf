"""Create database schema and seed a demo landlord and property for development."""
from __future__ import annotations

import asyncio

from gidana.core.config import get_settings
from gidana.core.context import AppContext
from gidana.db.session import create_schema
from gidana.models import Account, Property, Role, Unit, UnitStatus
from gidana.models.base import utcnow
from gidana.services.credentials import hash_password
from gidana.services.identity import make_identity

LANDLORD_EMAIL = "landlord@example.com"
TENANT_EMAIL = "tenant@example.com"
DEMO_PASSWORD = "gidana-demo"

PROPERTY = {
	"id": "prop-sunset-court",
	"code": "GIDA-1234",
	"name": "Sunset Court",
	"address": "12 Marina Road",
	"city": "Lagos",
	"state": "Lagos",
	"units": [
		{"id": "unit-sunset-a1", "label": "A1", "rent": 150_000, "occupied": False},
		{"id": "unit-sunset-a2", "label": "A2", "rent": 180_000, "occupied": True},
	],
}


async def seed(context: AppContext) -> None:
	"""Insert or update the demo landlord, tenant, property and units."""

	settings = context.settings
	password_hash = hash_password(DEMO_PASSWORD, settings.password_hash_rounds)
	landlord = make_identity(LANDLORD_EMAIL, display_name="Demo Landlord")
	tenant = make_identity(TENANT_EMAIL, display_name="Demo Tenant")

	async with context.session_factory() as session:
		async with session.begin():
			for identity, role in ((landlord, Role.LANDLORD), (tenant, Role.TENANT)):
				account = await session.get(Account, identity.account_id)
				if account is None:
					session.add(
						Account(
							id=identity.account_id,
							email=identity.email,
							display_name=identity.display_name,
							role=role.value,
							password_hash=password_hash,
						)
					)
				elif not account.password_hash:
					account.password_hash = password_hash

			prop = await session.get(Property, PROPERTY["id"])
			if prop is None:
				prop = Property(id=PROPERTY["id"], landlord_id=landlord.account_id)
				session.add(prop)
			prop.code = PROPERTY["code"]
			prop.name = PROPERTY["name"]
			prop.address = PROPERTY["address"]
			prop.city = PROPERTY["city"]
			prop.state = PROPERTY["state"]
			await session.flush()

			for unit_data in PROPERTY["units"]:
				unit = await session.get(Unit, unit_data["id"])
				if unit is None:
					unit = Unit(id=unit_data["id"], property_id=prop.id)
					session.add(unit)
				unit.label = unit_data["label"]
				unit.rent = unit_data["rent"]
				if unit_data["occupied"]:
					unit.status = UnitStatus.OCCUPIED.value
					unit.tenant_id = tenant.account_id
					unit.tenant_name = tenant.display_name
					unit.tenant_email = tenant.email
					unit.claimed_at = unit.claimed_at or utcnow()
				else:
					unit.status = UnitStatus.VACANT.value
					unit.tenant_id = None
					unit.tenant_name = None
					unit.tenant_email = None
					unit.claimed_at = None
			await session.flush()

			tenant_account = await session.get(Account, tenant.account_id)
			tenant_account.unit_id = "unit-sunset-a2"


async def main() -> None:
	context = AppContext(get_settings())
	await context.init()
	try:
		await create_schema(context.engine)
		await seed(context)
	finally:
		await context.dispose()
	print(f"Database schema ensured; demo property {PROPERTY['code']} seeded (password: {DEMO_PASSWORD}).")


if __name__ == "__main__":
	asyncio.run(main())
