"""
Integration tests for the upload endpoints.
"""

import io

import pytest
from PIL import Image


pytestmark = pytest.mark.integration


def jpeg_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (20, 20), (0, 128, 255)).save(buffer, format="JPEG")
    return buffer.getvalue()


def test_upload_download_delete(test_client, planner_user, auth_headers):
    headers = auth_headers(planner_user)
    response = test_client.post(
        "/api/upload",
        files=[
            ("avatar", ("me.jpg", jpeg_bytes(), "image/jpeg")),
            ("document", ("contract.pdf", b"%PDF-1.4 test", "application/pdf")),
        ],
        headers=headers,
    )

    assert response.status_code == 201
    files = response.json()["files"]
    assert [f["folder"] for f in files] == ["avatars", "documents"]
    assert files[0]["processed"] is True
    assert files[1]["url"] == f"/api/upload/{files[1]['filename']}"

    download = test_client.get(files[1]["url"], headers=headers)
    assert download.status_code == 200
    assert download.content == b"%PDF-1.4 test"

    assert test_client.delete(files[1]["url"], headers=headers).status_code == 200
    assert test_client.get(files[1]["url"], headers=headers).status_code == 404


def test_disallowed_type(test_client, client_user, auth_headers):
    response = test_client.post(
        "/api/upload",
        files=[("attachment", ("run.sh", b"echo hi", "application/x-sh"))],
        headers=auth_headers(client_user),
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Only image files and documents are allowed!"


def test_oversize_file(test_client, client_user, auth_headers):
    response = test_client.post(
        "/api/upload",
        files=[("document", ("big.txt", b"x" * (1024 * 1024 + 1), "text/plain"))],
        headers=auth_headers(client_user),
    )
    assert response.status_code == 400


def test_no_files(test_client, client_user, auth_headers):
    response = test_client.post("/api/upload", data={"note": "nothing"}, headers=auth_headers(client_user))
    assert response.status_code == 400


def test_requires_auth(test_client):
    response = test_client.post("/api/upload", files=[("document", ("a.txt", b"x", "text/plain"))])
    assert response.status_code == 401


def test_clients_cannot_delete(test_client, client_user, auth_headers):
    headers = auth_headers(client_user)
    stored = test_client.post(
        "/api/upload", files=[("document", ("a.txt", b"x", "text/plain"))], headers=headers,
    ).json()["files"][0]
    assert test_client.delete(stored["url"], headers=headers).status_code == 403
