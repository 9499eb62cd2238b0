from datetime import time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clinic_backend.auth.actors import Actor, ActorRole
from clinic_backend.database import Base
from clinic_backend.models.appointment import Appointment  # noqa: F401
from clinic_backend.models.booked_slot import BookedSlot  # noqa: F401
from clinic_backend.models.practitioner import Practitioner


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_practitioner(db):
    created = []

    def factory(**overrides) -> Practitioner:
        values = {
            'name': f'Dr. Practitioner {len(created) + 1}',
            'email': f'practitioner{len(created) + 1}@clinic.test',
            'speciality': 'General physician',
            'fee': 50,
            'available': True,
            'working_hours_start': time(10, 0),
            'working_hours_end': time(21, 0),
            'slot_duration_minutes': 30,
        }
        values.update(overrides)
        practitioner = Practitioner(**values)
        db.add(practitioner)
        db.commit()
        db.refresh(practitioner)
        created.append(practitioner)
        return practitioner

    return factory


@pytest.fixture
def practitioner(make_practitioner) -> Practitioner:
    return make_practitioner()


@pytest.fixture
def patient() -> Actor:
    return Actor(role=ActorRole.PATIENT, subject='patient-1')


@pytest.fixture
def other_patient() -> Actor:
    return Actor(role=ActorRole.PATIENT, subject='patient-2')


@pytest.fixture
def operator() -> Actor:
    return Actor(role=ActorRole.OPERATOR, subject='ops@clinic.test')


@pytest.fixture
def practitioner_actor(practitioner) -> Actor:
    return Actor(role=ActorRole.PRACTITIONER, subject=str(practitioner.id))
