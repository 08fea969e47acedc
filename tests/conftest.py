"""
Shared fixtures for all tests.

factory-boy factories and the fake intake service live here so both unit/ and
integration/ can import them.
"""
import json

import factory
import httpx
import pytest
import pytest_asyncio

from careplan_client.payload import SubmissionPayload
from careplan_client.transport import IntakeTransport

BASE_URL = 'http://testserver/api'


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------

class SubmissionPayloadFactory(factory.Factory):
    class Meta:
        model = SubmissionPayload

    first_name = 'Alice'
    last_name = 'Wang'
    mrn = factory.Sequence(lambda n: f'{100000 + n}')
    referring_provider = 'Dr. Smith'
    provider_npi = factory.Sequence(lambda n: f'{1000000000 + n}')
    primary_diagnosis = 'L40.0'
    medication_name = 'Humira'
    records_text = 'Patient presents with plaque psoriasis.'
    additional_diagnoses = factory.LazyFunction(list)
    medication_history = factory.LazyFunction(list)


# ---------------------------------------------------------------------------
# Response builders
# ---------------------------------------------------------------------------

def success_body(patient_id=7, order_id=42, message='Patient and order created successfully'):
    return {'message': message, 'patient_id': patient_id, 'order_id': order_id}


def confirmation_body(patient=False, provider=False, order=False, nested=False):
    issues = {}
    if patient:
        issues['patient'] = {'existing_name': 'Alice Wong', 'submitted_name': 'Alice Wang', 'mrn': '100001'}
    if provider:
        issues['provider'] = {'existing_name': 'Dr. Jones', 'submitted_name': 'Dr. Smith', 'npi': '1000000001'}
    if order:
        issues['order'] = {'medication_name': 'Humira', 'existing_order_id': 17}
    shape = {'requires_confirmation': True, 'issues': issues}
    return {'detail': shape} if nested else shape


def json_response(status_code, body):
    return httpx.Response(status_code, json=body)


def text_response(status_code, text, content_type='text/html'):
    return httpx.Response(status_code, text=text, headers={'content-type': content_type})


# ---------------------------------------------------------------------------
# Fake remote service
# ---------------------------------------------------------------------------

class FakeIntakeService:
    """
    httpx.MockTransport 背后的假服务。

    order_responses / care_plan_responses 按顺序弹出；元素可以是 httpx.Response，
    也可以是异常（模拟连接失败）。所有收到的请求记录在 requests 里。
    """

    def __init__(self):
        self.order_responses = []
        self.care_plan_responses = []
        self.requests = []

    def handler(self, request):
        self.requests.append(request)
        if request.url.path.endswith('/care-plan'):
            queue = self.care_plan_responses
        else:
            queue = self.order_responses
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def order_requests(self):
        return [r for r in self.requests if r.method == 'POST']

    @property
    def order_bodies(self):
        return [json.loads(r.content) for r in self.order_requests]

    @property
    def care_plan_requests(self):
        return [r for r in self.requests if r.method == 'GET']


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def payload():
    return SubmissionPayloadFactory(mrn='100001', provider_npi='1000000001')


@pytest.fixture
def fake_service():
    return FakeIntakeService()


@pytest_asyncio.fixture
async def transport(fake_service):
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_service.handler))
    yield IntakeTransport(base_url=BASE_URL, client=client)
    await client.aclose()
