import os

os.environ.setdefault("USE_MOCK_DB", "true")

from fastapi.testclient import TestClient
from app.main import app

client = TestClient(app)

print('ROOT:')
print(client.get('/').json())

print('\nHEALTH:')
print(client.get('/api/health').json())

print('\nDB HEALTH:')
resp = client.get('/api/health/db')
print(resp.status_code, resp.json())

print('\nSUBMIT:')
resp = client.post('/api/cleanup-requests', json={
    'problemType': 'other',
    'location': 'Independence Square',
    'severity': 'high',
    'description': 'Dead animal on the walkway near the fountain',
    'contactInfo': {'name': 'Kofi', 'phone': '+233 24 555 0101'},
    'otherDetails': {'customProblemType': 'Dead animal removal'},
})
print(resp.status_code, resp.json())

print('\nSTATS:')
print(client.get('/api/cleanup-requests/stats').json())
