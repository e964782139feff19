"""HTTP contract tests for /api/users, run through the app lifespan."""

from __future__ import annotations

from fastapi.testclient import TestClient

from core.errors import ChainSubmissionError
from tests.helpers import JANE, RecordingChain


def register_with_did(client: TestClient, address: str = "0xABC", username: str = "alice") -> str:
    assert client.post("/api/users/register", json={"suiAddress": address, "username": username}).status_code == 201
    response = client.post(f"/api/users/{address}/did")
    assert response.status_code == 201
    return response.json()["didId"]


def test_root_and_health_check(client: TestClient) -> None:
    assert client.get("/").json()["status"] == "operational"

    health = client.get("/health-check").json()
    assert health["blockchain"].startswith("ok — simulated chain")
    assert health["issuer"].startswith("0x")


def test_register_validation_and_duplicates(client: TestClient) -> None:
    missing = client.post("/api/users/register", json={"suiAddress": "0xABC"})
    assert missing.status_code == 400
    assert missing.json()["message"] == "Sui address and username are required"

    assert client.post("/api/users/register", json={"suiAddress": "0xABC", "username": "alice"}).status_code == 201
    duplicate = client.post("/api/users/register", json={"suiAddress": "0xABC", "username": "alice2"})
    assert duplicate.status_code == 400


def test_malformed_body_is_a_400(client: TestClient) -> None:
    response = client.post("/api/users/register", json={"suiAddress": ["not", "a", "string"], "username": "x"})
    assert response.status_code == 400


def test_did_lifecycle(client: TestClient, chain: RecordingChain) -> None:
    assert client.get("/api/users/0xABC/did").status_code == 404

    did_id = register_with_did(client)

    assert client.get("/api/users/0xABC/did").json() == {"hasDid": True, "didId": did_id}
    again = client.post("/api/users/0xABC/did")
    assert again.status_code == 400
    assert again.json()["message"] == "User already has a DID"
    assert len(chain.calls_to("create_did")) == 1

    document = client.get("/api/users/0xABC/did/document").json()
    assert document["id"] == f"did:sui:{did_id}"


def test_auto_created_username_collision_is_a_400(client: TestClient) -> None:
    assert client.post("/api/users/0x12345678aaaa/did").status_code == 201

    response = client.post("/api/users/0x12345678bbbb/did")

    assert response.status_code == 400
    assert response.json()["message"] == "User with this address or username already exists"


def test_end_to_end_issue_and_verify(client: TestClient) -> None:
    register_with_did(client)

    response = client.post("/api/users/credentials", json={"userAddress": "0xABC", "credentialData": JANE})
    assert response.status_code == 201
    credential = response.json()
    assert credential["isRevoked"] is False
    assert credential["suiVcId"]
    assert credential["transactionDigest"]

    listed = client.get("/api/users/0xABC/credentials").json()
    assert [c["id"] for c in listed] == [credential["id"]]

    for ref in (credential["suiVcId"], credential["id"]):
        verdict = client.post("/api/users/verify", json={"userAddress": "0xABC", "vcId": ref})
        assert verdict.status_code == 200
        assert verdict.json()["isValid"] is True
        assert verdict.json()["hasAccess"] is True


def test_verify_unknown_credential_is_not_an_error(client: TestClient) -> None:
    response = client.post("/api/users/verify", json={"userAddress": "0xABC", "vcId": "0xdoesnotexist"})

    assert response.status_code == 200
    assert response.json() == {
        "isValid": False,
        "hasAccess": False,
        "message": "Credential not found or has been revoked",
    }


def test_verify_requires_both_fields(client: TestClient) -> None:
    assert client.post("/api/users/verify", json={"userAddress": "0xABC"}).status_code == 400


def test_credential_without_did_is_rejected_before_chain(client: TestClient, chain: RecordingChain) -> None:
    client.post("/api/users/register", json={"suiAddress": "0xABC", "username": "alice"})

    response = client.post("/api/users/credentials", json={"userAddress": "0xABC", "credentialData": JANE})

    assert response.status_code == 400
    assert response.json()["message"] == "User must have a DID before creating credentials"
    assert chain.submitted == []


def test_credential_with_missing_claims_is_rejected(client: TestClient) -> None:
    register_with_did(client)
    response = client.post(
        "/api/users/credentials",
        json={"userAddress": "0xABC", "credentialData": {"fullName": "Jane Doe"}},
    )
    assert response.status_code == 400


def test_revoked_credential_fails_verification(client: TestClient) -> None:
    register_with_did(client)
    credential = client.post(
        "/api/users/credentials", json={"userAddress": "0xABC", "credentialData": JANE}
    ).json()

    revoke = client.post(f"/api/users/0xABC/credentials/{credential['id']}/revoke")
    assert revoke.status_code == 200
    assert revoke.json()["isRevoked"] is True

    for ref in (credential["suiVcId"], credential["id"]):
        verdict = client.post("/api/users/verify", json={"userAddress": "0xABC", "vcId": ref}).json()
        assert (verdict["isValid"], verdict["hasAccess"]) == (False, False)
    assert client.get("/api/users/0xABC/credentials").json() == []
    assert client.post(f"/api/users/0xABC/credentials/{credential['id']}/revoke").status_code == 404


def test_issue_kyc_legacy_endpoint(client: TestClient) -> None:
    body = {"suiAddress": "0xABC", "firstName": "Jane", "lastName": "Doe", "dateOfBirth": "1990-01-01"}
    assert client.post("/api/users/issue-kyc", json=body).status_code == 404

    client.post("/api/users/register", json={"suiAddress": "0xABC", "username": "alice"})
    response = client.post("/api/users/issue-kyc", json=body)

    assert response.status_code == 200
    assert response.json()["message"] == "KYC Credential issued successfully!"
    assert response.json()["vcObjectId"]


def test_chain_failure_renders_500_with_message(client: TestClient, chain: RecordingChain) -> None:
    register_with_did(client)

    async def rejecting_submit(call, signer):
        raise ChainSubmissionError("InsufficientCoinBalance")

    chain.inner.submit = rejecting_submit
    response = client.post("/api/users/credentials", json={"userAddress": "0xABC", "credentialData": JANE})

    assert response.status_code == 500
    assert "InsufficientCoinBalance" in response.json()["error"]
    assert client.get("/api/users/0xABC/credentials").json() == []
