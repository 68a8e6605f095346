"""Integration fixtures: seed the read-only plan/feature catalog directly."""

from types import SimpleNamespace

import pytest

from authz_engine.infrastructure.persistence.models import Feature, Plan, PlanFeature


@pytest.fixture
async def catalog(session_factory) -> SimpleNamespace:
    """Starter and Professional plans; sso (boolean) and extra_seats (number) features."""
    starter = Plan(name="starter", display_name="Starter", tier="STARTER", limits={"teamSeats": 3})
    pro = Plan(name="pro", display_name="Professional", tier="PROFESSIONAL", limits={"teamSeats": 10})
    sso = Feature(key="sso", name="Single sign-on", value_type="boolean", default_value=False)
    seats = Feature(key="extra_seats", name="Extra seats", value_type="number", default_value=0)
    async with session_factory() as session:
        async with session.begin():
            session.add_all([starter, pro, sso, seats])
            await session.flush()
            session.add(PlanFeature(plan_id=pro.id, feature_id=sso.id, value=True))
    return SimpleNamespace(starter=starter, pro=pro, sso=sso, seats=seats)
