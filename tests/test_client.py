import unittest

import httpx

import api.client as client
from api.client import ApiError, UnauthorizedError, request
from fakes import FakeBackend, reset_api_state


class ClientTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        reset_api_state()
        self.backend = FakeBackend().install()

    def tearDown(self):
        reset_api_state()

    async def test_returns_decoded_json_and_sends_bearer_token(self):
        self.backend.route("GET", "/products", [{"_id": "p1"}])
        client.set_token("tok-123")

        data = await request("GET", "/products")

        self.assertEqual(data, [{"_id": "p1"}])
        sent = self.backend.requests[-1]
        self.assertEqual(sent.headers["Authorization"], "Bearer tok-123")
        self.assertTrue(str(sent.url).startswith(client.API_URL.rstrip("/")))

    async def test_no_authorization_header_without_token(self):
        self.backend.route("GET", "/products", [])
        await request("GET", "/products")
        self.assertNotIn("Authorization", self.backend.requests[-1].headers)

    async def test_empty_body_is_none(self):
        self.backend.route("DELETE", "/products/p1", None, status=204)
        self.assertIsNone(await request("DELETE", "/products/p1"))

    async def test_error_carries_server_message_and_status(self):
        self.backend.route("POST", "/customers", {"message": "Phone already used"}, status=400)

        with self.assertRaises(ApiError) as ctx:
            await request("POST", "/customers", json={}, fallback="Failed to create customer")

        self.assertEqual(ctx.exception.message, "Phone already used")
        self.assertEqual(ctx.exception.status, 400)

    async def test_error_without_message_uses_fallback(self):
        self.backend.route("GET", "/bills", None, status=500)

        with self.assertRaises(ApiError) as ctx:
            await request("GET", "/bills", fallback="Failed to load bills")

        self.assertEqual(str(ctx.exception), "Failed to load bills")
        self.assertEqual(ctx.exception.status, 500)

    async def test_transport_error_becomes_api_error(self):
        def fail(req):
            raise httpx.ConnectError("connection refused", request=req)

        self.backend.route("GET", "/sales", fail)

        with self.assertRaises(ApiError) as ctx:
            await request("GET", "/sales", fallback="Failed to load sales")

        self.assertTrue(ctx.exception.message.startswith("Failed to load sales: "))
        self.assertIsNone(ctx.exception.status)

    async def test_unauthorized_drops_token_and_runs_hooks(self):
        self.backend.route("GET", "/auth/me", {"message": "Token expired"}, status=401)
        fired = []
        client.on_unauthorized(lambda: fired.append(True))
        client.set_token("old")

        with self.assertRaises(UnauthorizedError) as ctx:
            await request("GET", "/auth/me")

        self.assertEqual(ctx.exception.message, "Token expired")
        self.assertEqual(ctx.exception.status, 401)
        self.assertIsNone(client.get_token())
        self.assertEqual(fired, [True])

    def test_hooks_are_registered_once(self):
        def hook():
            pass

        client.on_unauthorized(hook)
        client.on_unauthorized(hook)
        self.assertEqual(client._unauthorized_hooks, [hook])


if __name__ == "__main__":
    unittest.main()
