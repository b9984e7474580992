import json
import unittest
from unittest.mock import patch

import httpx
from fastapi.testclient import TestClient

from app.core.config import settings
from app.core.errors import MissingConfiguration, UpstreamFailure
from app.services.places import clamp_limit, clamp_radius_miles, find_planners, rank_places
from app.services.pro import verify_pro_key
from app.services.search import clamp_num, normalize_images, normalize_web, search
from main import app


class SearchUnitTest(unittest.IsolatedAsyncioTestCase):
    def test_clamp_num(self):
        self.assertEqual(clamp_num(None, "web"), 10)
        self.assertEqual(clamp_num(None, "images"), 12)
        self.assertEqual(clamp_num("50", "web"), 20)
        self.assertEqual(clamp_num("0", "web"), 1)
        self.assertEqual(clamp_num("abc", "images"), 12)
        self.assertEqual(clamp_num("5abc", "web"), 5)
        self.assertEqual(clamp_num(" 7 ", "images"), 7)

    def test_normalize_web_drops_empty_entries(self):
        data = {"organic": [{"title": "A", "link": "https://a"}, {"snippet": "orphan"}, {"link": "https://c"}]}
        results = normalize_web(data, 10)
        self.assertEqual(
            results,
            [
                {"title": "A", "link": "https://a", "snippet": ""},
                {"title": "", "link": "https://c", "snippet": ""},
            ],
        )

    def test_normalize_images_falls_back_between_urls(self):
        data = {"images": [{"source": "site", "thumbnailUrl": "https://t"}, {"title": "no urls"}]}
        results = normalize_images(data, 12)
        self.assertEqual(len(results), 1)
        self.assertEqual(results[0]["title"], "site")
        self.assertEqual(results[0]["imageUrl"], "https://t")

    async def test_search_requires_key(self):
        with patch.object(settings, "serper_api_key", None):
            with self.assertRaises(MissingConfiguration):
                await search("cats")

    async def test_search_posts_to_serper(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append((str(request.url), request.headers["x-api-key"], json.loads(request.content)))
            return httpx.Response(200, json={"organic": [{"title": "Cats", "link": "https://cats", "snippet": "meow"}]})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            with patch.object(settings, "serper_api_key", "serper-key"):
                resp = await search("cats", "web", 5, client=client)

        self.assertEqual(seen, [("https://google.serper.dev/search", "serper-key", {"q": "cats", "num": 5})])
        self.assertEqual(resp.results[0]["snippet"], "meow")

    async def test_search_upstream_error(self):
        async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(403, text="bad key"))) as client:
            with patch.object(settings, "serper_api_key", "serper-key"):
                with self.assertRaises(UpstreamFailure):
                    await search("cats", client=client)


def places_handler(details_fail_for=()):
    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/geocode/json"):
            return httpx.Response(
                200,
                json={
                    "status": "OK",
                    "results": [{"formatted_address": "Macomb, MI 48044", "geometry": {"location": {"lat": 42.6, "lng": -82.9}}}],
                },
            )
        if path.endswith("/nearbysearch/json"):
            return httpx.Response(
                200,
                json={
                    "status": "OK",
                    "results": [
                        {"place_id": "low", "name": "Low", "rating": 5, "user_ratings_total": 2, "vicinity": "1 Low St"},
                        {"place_id": "high", "name": "High", "rating": 4.5, "user_ratings_total": 300, "vicinity": "2 High St"},
                        {"place_id": "none", "name": "None"},
                    ],
                },
            )
        place_id = request.url.params["place_id"]
        if place_id in details_fail_for:
            return httpx.Response(200, json={"status": "NOT_FOUND"})
        return httpx.Response(200, json={"status": "OK", "result": {"name": f"{place_id} details", "website": "https://p"}})

    return handler


class PlacesUnitTest(unittest.IsolatedAsyncioTestCase):
    def test_clamps(self):
        self.assertEqual(clamp_limit(None), 10)
        self.assertEqual(clamp_limit("40"), 15)
        self.assertEqual(clamp_limit("x"), 10)
        self.assertEqual(clamp_radius_miles(None), 12.0)
        self.assertEqual(clamp_radius_miles("1"), 2.0)
        self.assertEqual(clamp_radius_miles("100"), 25.0)

    def test_rank_by_rating_and_review_volume(self):
        ranked = rank_places(
            [
                {"place_id": "few", "rating": 5.0, "user_ratings_total": 3},
                {"place_id": "many", "rating": 4.2, "user_ratings_total": 900},
                {"place_id": "unrated"},
            ]
        )
        self.assertEqual([p["place_id"] for p in ranked], ["many", "few", "unrated"])

    async def test_find_planners_falls_back_to_summary(self):
        async with httpx.AsyncClient(transport=httpx.MockTransport(places_handler(details_fail_for=("low",)))) as client:
            with patch.object(settings, "google_places_api_key", "places-key"):
                resp = await find_planners("48044", limit=2, radius_miles=12, client=client)

        self.assertEqual(resp.count, 2)
        self.assertEqual(resp.center.formatted, "Macomb, MI 48044")
        self.assertEqual(resp.results[0].place_id, "high")
        self.assertEqual(resp.results[0].name, "high details")
        self.assertEqual(resp.results[1].place_id, "low")
        self.assertEqual(resp.results[1].formatted_address, "1 Low St")
        self.assertIsNone(resp.results[1].website)


class LookupRoutesTest(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)

    def test_search_requires_query(self):
        resp = self.client.get("/api/search")
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["error"], "Missing q")

    def test_search_without_key_fails_closed(self):
        with patch.object(settings, "serper_api_key", None):
            resp = self.client.get("/api/search", params={"q": "cats"})
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["detail"], "Missing SERPER_API_KEY")

    def test_planners_requires_zip(self):
        resp = self.client.get("/api/planners")
        self.assertEqual(resp.status_code, 400)

    def test_planners_without_key_fails_closed(self):
        with patch.object(settings, "google_places_api_key", None):
            resp = self.client.get("/api/planners", params={"zip": "48044"})
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json()["detail"], "Missing GOOGLE_PLACES_API_KEY")

    def test_pro_key_verification(self):
        with patch.object(settings, "pro_license_keys", ["SIMO-PRO-2026"]):
            self.assertEqual(self.client.post("/api/pro", json={"key": "SIMO-PRO-2026"}).json()["reason"], "valid")
            self.assertEqual(self.client.post("/api/pro", json={"key": "nope"}).json()["pro"], False)
            self.assertEqual(self.client.post("/api/pro", json={}).json()["reason"], "missing_key")


class ProUnitTest(unittest.TestCase):
    def test_verify_pro_key(self):
        self.assertTrue(verify_pro_key(" K1 ", ["K1", "K2"]).pro)
        self.assertEqual(verify_pro_key("K3", ["K1"]).reason, "invalid")
        self.assertEqual(verify_pro_key(None, ["K1"]).reason, "missing_key")


if __name__ == "__main__":
    unittest.main()
