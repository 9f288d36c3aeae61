import os
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient

from places_api.app.core.geocoding import get_geocoder
from places_api.app.main import create_app
from places_api.app.services.place_service import PlaceService
from places_api.tests.support import PNG_BYTES, FakeGeocoder, TemporaryStoreMixin


class BackendApiTests(TemporaryStoreMixin, unittest.TestCase):
    def setUp(self):
        super().setUp()
        self.app = create_app()
        self.geocoder = FakeGeocoder()
        self.app.dependency_overrides[get_geocoder] = lambda: self.geocoder
        self.client = TestClient(self.app)

    def uploaded_files(self) -> list[str]:
        if not os.path.isdir(self.upload_dir):
            return []
        return sorted(os.listdir(self.upload_dir))

    def signup(self, name="Max", email="max@example.com", password="secret1") -> dict:
        response = self.client.post(
            "/api/v1/users/signup",
            data={"name": name, "email": email, "password": password},
            files={"image": ("avatar.png", PNG_BYTES, "image/png")},
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def auth(self, account: dict) -> dict:
        return {"Authorization": f"Bearer {account['token']}"}

    def create_place(self, account: dict, **fields):
        data = {"title": "Googleplex", "description": "Headquarters", "address": "1600 Amphitheatre Parkway"}
        data.update(fields)
        return self.client.post(
            "/api/v1/places/",
            data=data,
            files={"image": ("place.png", PNG_BYTES, "image/png")},
            headers=self.auth(account),
        )

    def test_create_place_flow(self):
        max_ = self.signup()
        response = self.create_place(max_)
        self.assertEqual(response.status_code, 201, response.text)
        place = response.json()["place"]
        self.assertEqual(place["creator"], max_["userId"])
        self.assertEqual(place["location"], {"lat": 37.42, "lng": -122.08})
        self.assertTrue(os.path.exists(place["image"]))

        fetched = self.client.get(f"/api/v1/places/{place['id']}")
        self.assertEqual(fetched.status_code, 200)
        self.assertEqual(fetched.json()["place"], place)

        owned = self.client.get(f"/api/v1/places/user/{max_['userId']}")
        self.assertEqual(owned.status_code, 200)
        self.assertEqual([p["id"] for p in owned.json()["places"]], [place["id"]])

        users = self.client.get("/api/v1/users/").json()["users"]
        self.assertEqual(users[0]["places"], [place["id"]])
        self.assertNotIn("password", users[0])

    def test_mutations_require_token(self):
        response = self.client.post(
            "/api/v1/places/",
            data={"title": "T", "description": "12345", "address": "A"},
            files={"image": ("place.png", PNG_BYTES, "image/png")},
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json(), {"message": "Authentication failed!"})
        self.assertEqual(self.uploaded_files(), [])

        response = self.client.delete(
            "/api/v1/places/some-id", headers={"Authorization": "Bearer not-a-token"}
        )
        self.assertEqual(response.status_code, 401)

    def test_invalid_inputs_store_nothing(self):
        max_ = self.signup()
        before = self.uploaded_files()
        response = self.create_place(max_, description="1234")
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["message"], "Invalid inputs passed, please check your data.")
        self.assertEqual(self.uploaded_files(), before)
        self.assertEqual(self.count("places"), 0)

    def test_geocoding_failure_removes_upload(self):
        max_ = self.signup()
        before = self.uploaded_files()
        self.geocoder.fail = True
        response = self.create_place(max_)
        self.assertEqual(response.status_code, 422)
        self.assertEqual(
            response.json(), {"message": "Could not find location for the specified address."}
        )
        self.assertEqual(self.uploaded_files(), before)
        self.assertEqual(self.count("places"), 0)
        self.assertEqual(self.count("user_places"), 0)

    def test_unexpected_failure_removes_upload(self):
        max_ = self.signup()
        before = self.uploaded_files()
        client = TestClient(self.app, raise_server_exceptions=False)
        with patch.object(PlaceService, "create_place", side_effect=RuntimeError("boom")):
            response = client.post(
                "/api/v1/places/",
                data={"title": "T", "description": "12345", "address": "A"},
                files={"image": ("place.png", PNG_BYTES, "image/png")},
                headers=self.auth(max_),
            )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(self.uploaded_files(), before)
        self.assertEqual(self.count("places"), 0)

    def test_rejects_non_image_upload(self):
        max_ = self.signup()
        response = self.client.post(
            "/api/v1/places/",
            data={"title": "T", "description": "12345", "address": "A"},
            files={"image": ("notes.txt", b"hello", "text/plain")},
            headers=self.auth(max_),
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json(), {"message": "Invalid mime type!"})

    def test_update_and_delete_are_owner_only(self):
        max_ = self.signup()
        manu = self.signup(name="Manu", email="manu@example.com")
        place = self.create_place(max_).json()["place"]

        response = self.client.patch(
            f"/api/v1/places/{place['id']}",
            json={"title": "Mine now", "description": "Taken over"},
            headers=self.auth(manu),
        )
        self.assertEqual(response.status_code, 403)

        response = self.client.delete(f"/api/v1/places/{place['id']}", headers=self.auth(manu))
        self.assertEqual(response.status_code, 403)
        self.assertEqual(self.count("places"), 1)

        response = self.client.patch(
            f"/api/v1/places/{place['id']}",
            json={"title": "Googleplex HQ", "description": "Still headquarters"},
            headers=self.auth(max_),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["place"]["title"], "Googleplex HQ")

        response = self.client.patch(
            f"/api/v1/places/{place['id']}",
            json={"title": "", "description": "Still headquarters"},
            headers=self.auth(max_),
        )
        self.assertEqual(response.status_code, 422)

    def test_delete_place_removes_image(self):
        max_ = self.signup()
        place = self.create_place(max_).json()["place"]

        response = self.client.delete(f"/api/v1/places/{place['id']}", headers=self.auth(max_))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"message": "Deleted place."})
        self.assertFalse(os.path.exists(place["image"]))

        response = self.client.get(f"/api/v1/places/{place['id']}")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"message": "Could not find a place for the provided id."})

        response = self.client.get(f"/api/v1/places/user/{max_['userId']}")
        self.assertEqual(response.status_code, 404)

    def test_delete_succeeds_when_image_already_gone(self):
        max_ = self.signup()
        place = self.create_place(max_).json()["place"]
        os.remove(place["image"])

        response = self.client.delete(f"/api/v1/places/{place['id']}", headers=self.auth(max_))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.count("places"), 0)

    def test_places_of_unknown_user(self):
        response = self.client.get("/api/v1/places/user/nobody")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"message": "Could not find user for the provided id."})

    def test_login(self):
        max_ = self.signup(email="Max@Example.com")
        self.assertEqual(max_["email"], "max@example.com")

        response = self.client.post(
            "/api/v1/users/login", json={"email": "max@example.com", "password": "secret1"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["userId"], max_["userId"])

        response = self.client.post(
            "/api/v1/users/login", json={"email": "max@example.com", "password": "wrong-password"}
        )
        self.assertEqual(response.status_code, 403)

    def test_duplicate_signup(self):
        self.signup()
        before = self.uploaded_files()
        response = self.client.post(
            "/api/v1/users/signup",
            data={"name": "Max", "email": "max@example.com", "password": "secret1"},
            files={"image": ("avatar.png", PNG_BYTES, "image/png")},
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json(), {"message": "User exists already, please login instead."})
        self.assertEqual(self.uploaded_files(), before)

    def test_unknown_route(self):
        response = self.client.get("/api/v1/nowhere")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"message": "Could not find this route."})


if __name__ == "__main__":
    unittest.main()
