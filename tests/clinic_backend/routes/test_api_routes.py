import json
from datetime import date, datetime, timedelta

import httpx
import pytest
from fastapi.testclient import TestClient

from clinic_backend.auth.actors import Actor, ActorRole
from clinic_backend.auth.jwt_handler import create_access_token
from clinic_backend.core import config
from clinic_backend.main import app
from clinic_backend.routes import common
from clinic_backend.scheduling.slot_keys import format_date_key
from clinic_backend.services.payments import PaymentProcessorClient, compute_signature

KEY_SECRET = 'processor-secret'
TOMORROW_KEY = format_date_key(date.today() + timedelta(days=1))


def _auth(role: ActorRole, subject: str) -> dict:
    return {'Authorization': f'Bearer {create_access_token(Actor(role=role, subject=subject))}'}


@pytest.fixture
def processor_orders() -> dict:
    return {}


@pytest.fixture
def client(session_factory, processor_orders, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(common, 'ensure_booking_schema', lambda: None)
    monkeypatch.setattr(config, 'PAYMENT_KEY_SECRET', KEY_SECRET)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == 'POST':
            order = {'id': f'order_{len(processor_orders) + 1}', 'status': 'created', **json.loads(request.content)}
            processor_orders[order['id']] = order
            return httpx.Response(200, json=order)
        order_id = request.url.path.rsplit('/', 1)[-1]
        return httpx.Response(200, json={**processor_orders[order_id], 'status': 'paid'})

    app.dependency_overrides[common.get_db] = override_get_db
    app.dependency_overrides[common.get_payment_client] = lambda: PaymentProcessorClient(
        base_url='https://processor.test/v1',
        key_id='key_id',
        key_secret=KEY_SECRET,
        transport=httpx.MockTransport(handler),
    )
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def patient_headers() -> dict:
    return _auth(ActorRole.PATIENT, 'patient-1')


@pytest.fixture
def operator_headers() -> dict:
    return _auth(ActorRole.OPERATOR, 'ops@clinic.test')


def _book(client, practitioner_id: int, headers: dict, slot_label: str = '10:30'):
    return client.post(
        '/appointments',
        json={'practitioner_id': practitioner_id, 'date_key': TOMORROW_KEY, 'slot_label': slot_label},
        headers=headers,
    )


def test_root_reports_status(client) -> None:
    assert client.get('/').json() == {'status': 'Clinic Booking API Running'}


def test_list_slots_returns_seven_days(client, practitioner) -> None:
    response = client.get(f'/practitioners/{practitioner.id}/slots')

    assert response.status_code == 200
    days = response.json()
    assert len(days) == 7
    assert days[1]['date_key'] == TOMORROW_KEY
    assert len(days[1]['slots']) == 23
    assert days[1]['slots'][0]['time'] == '10:00'
    assert days[1]['slots'][-1]['time'] == '21:00'


def test_list_slots_for_unknown_practitioner_is_404(client) -> None:
    response = client.get('/practitioners/999/slots')

    assert response.status_code == 404
    assert response.json() == {'detail': 'Practitioner not found.'}


def test_book_requires_authentication(client, practitioner) -> None:
    assert _book(client, practitioner.id, headers={}).status_code == 401


def test_book_rejects_non_patient_token(client, practitioner, operator_headers) -> None:
    assert _book(client, practitioner.id, operator_headers).status_code == 403


def test_book_then_conflict(client, practitioner, patient_headers) -> None:
    first = _book(client, practitioner.id, patient_headers)
    second = _book(client, practitioner.id, _auth(ActorRole.PATIENT, 'patient-2'), slot_label='10:30 AM')

    assert first.status_code == 201
    assert first.json()['status'] == 'booked'
    assert first.json()['slot_label'] == '10:30'
    assert second.status_code == 409

    slots = client.get(f'/practitioners/{practitioner.id}/slots').json()
    assert '10:30' not in [slot['time'] for slot in slots[1]['slots']]


def test_book_outside_working_hours_is_400(client, practitioner, patient_headers) -> None:
    response = _book(client, practitioner.id, patient_headers, slot_label='08:00')

    assert response.status_code == 400


def test_patient_cancel_reopens_slot(client, practitioner, patient_headers) -> None:
    appointment_id = _book(client, practitioner.id, patient_headers).json()['id']

    response = client.post(f'/appointments/{appointment_id}/cancel', headers=patient_headers)

    assert response.status_code == 200
    assert response.json()['status'] == 'cancelled'
    slots = client.get(f'/practitioners/{practitioner.id}/slots').json()
    assert '10:30' in [slot['time'] for slot in slots[1]['slots']]


def test_other_patient_cannot_cancel(client, practitioner, patient_headers) -> None:
    appointment_id = _book(client, practitioner.id, patient_headers).json()['id']

    response = client.post(f'/appointments/{appointment_id}/cancel', headers=_auth(ActorRole.PATIENT, 'patient-2'))

    assert response.status_code == 403


def test_practitioner_completes_and_cannot_complete_cancelled(client, practitioner, patient_headers) -> None:
    practitioner_headers = _auth(ActorRole.PRACTITIONER, str(practitioner.id))
    completed_id = _book(client, practitioner.id, patient_headers).json()['id']
    cancelled_id = _book(client, practitioner.id, patient_headers, slot_label='11:00').json()['id']
    client.post(f'/practitioner/appointments/{cancelled_id}/cancel', headers=practitioner_headers)

    completed = client.post(f'/practitioner/appointments/{completed_id}/complete', headers=practitioner_headers)
    rejected = client.post(f'/practitioner/appointments/{cancelled_id}/complete', headers=practitioner_headers)

    assert completed.status_code == 200
    assert completed.json()['status'] == 'completed'
    assert rejected.status_code == 409


def test_payment_flow_marks_appointment_paid(client, practitioner, patient_headers) -> None:
    appointment_id = _book(client, practitioner.id, patient_headers).json()['id']

    order = client.post(f'/appointments/{appointment_id}/payment-order', headers=patient_headers).json()
    confirmation = client.post(
        '/payments/verify',
        json={
            'order_ref': order['order_ref'],
            'payment_id': 'pay_1',
            'signature': compute_signature(order['order_ref'], 'pay_1', KEY_SECRET),
        },
        headers=patient_headers,
    )

    assert order['amount'] == practitioner.fee * 100
    assert confirmation.json() == {'paid': True}
    appointments = client.get('/appointments', headers=patient_headers).json()
    assert appointments[0]['paid'] is True


def test_forged_payment_confirmation_is_not_paid(client, practitioner, patient_headers) -> None:
    appointment_id = _book(client, practitioner.id, patient_headers).json()['id']
    order = client.post(f'/appointments/{appointment_id}/payment-order', headers=patient_headers).json()

    confirmation = client.post(
        '/payments/verify',
        json={'order_ref': order['order_ref'], 'payment_id': 'pay_1', 'signature': 'forged'},
        headers=patient_headers,
    )

    assert confirmation.json() == {'paid': False}


def test_other_patient_cannot_confirm_payment(client, practitioner, patient_headers) -> None:
    appointment_id = _book(client, practitioner.id, patient_headers).json()['id']
    order = client.post(f'/appointments/{appointment_id}/payment-order', headers=patient_headers).json()

    confirmation = client.post(
        '/payments/verify',
        json={
            'order_ref': order['order_ref'],
            'payment_id': 'pay_1',
            'signature': compute_signature(order['order_ref'], 'pay_1', KEY_SECRET),
        },
        headers=_auth(ActorRole.PATIENT, 'patient-2'),
    )

    assert confirmation.status_code == 403
    assert client.get('/appointments', headers=patient_headers).json()[0]['paid'] is False


def test_operator_registers_and_toggles_practitioner(client, operator_headers, patient_headers) -> None:
    created = client.post(
        '/operator/practitioners',
        json={'name': 'Dr. New', 'email': ' NEW@Clinic.test ', 'speciality': 'Dermatologist', 'fee': 30},
        headers=operator_headers,
    )
    practitioner_id = created.json()['id']

    toggled = client.post(f'/operator/practitioners/{practitioner_id}/availability', headers=operator_headers)
    booking = _book(client, practitioner_id, patient_headers)

    assert created.status_code == 201
    assert created.json()['email'] == 'new@clinic.test'
    assert created.json()['working_hours_start'] == '10:00:00'
    assert toggled.json()['available'] is False
    assert booking.status_code == 400


def test_operator_rejects_duplicate_practitioner_email(client, practitioner, operator_headers) -> None:
    response = client.post(
        '/operator/practitioners',
        json={'name': 'Dr. Copy', 'email': practitioner.email, 'speciality': 'Dermatologist', 'fee': 30},
        headers=operator_headers,
    )

    assert response.status_code == 409


def test_operator_cancels_and_sees_dashboard(client, practitioner, patient_headers, operator_headers) -> None:
    appointment_id = _book(client, practitioner.id, patient_headers).json()['id']

    cancelled = client.post(f'/operator/appointments/{appointment_id}/cancel', headers=operator_headers)
    dashboard = client.get('/operator/dashboard', headers=operator_headers).json()
    appointments = client.get('/operator/appointments', headers=operator_headers).json()

    assert cancelled.json()['cancelled'] is True
    assert dashboard['practitioners'] == 1
    assert dashboard['appointments'] == 1
    assert [item['id'] for item in appointments] == [appointment_id]


def test_practitioner_dashboard_lists_own_appointments(client, practitioner, patient_headers) -> None:
    practitioner_headers = _auth(ActorRole.PRACTITIONER, str(practitioner.id))
    _book(client, practitioner.id, patient_headers)

    dashboard = client.get('/practitioner/dashboard', headers=practitioner_headers).json()
    appointments = client.get('/practitioner/appointments', headers=practitioner_headers).json()

    assert dashboard['appointments'] == 1
    assert dashboard['earnings'] == 0
    assert len(appointments) == 1
    assert appointments[0]['start_time'].startswith((date.today() + timedelta(days=1)).isoformat())
    assert isinstance(datetime.fromisoformat(appointments[0]['created_at']), datetime)
