import unittest
from unittest.mock import patch

import httpx

from pac_portal.core.supabase import SupabaseAuthClient, SupabaseError
from pac_portal.services.storage import StorageError, SupabaseStorageClient, parse_public_url

BASE_URL = "https://projeto.supabase.co"


class AuthClientTests(unittest.TestCase):
    def setUp(self):
        self.client = SupabaseAuthClient(BASE_URL + "/", "anon", "service")

    def tearDown(self):
        self.client.close()

    def test_get_user_sends_token(self):
        with patch.object(self.client._client, "request") as mock_request:
            mock_request.return_value = httpx.Response(200, json={"id": "abc", "email": "a@pac.org.br"})
            user = self.client.get_user("token-1")

        self.assertEqual(user["id"], "abc")
        method, path = mock_request.call_args.args
        headers = mock_request.call_args.kwargs["headers"]
        self.assertEqual((method, path), ("GET", "/user"))
        self.assertEqual(headers["Authorization"], "Bearer token-1")
        self.assertEqual(headers["apikey"], "anon")

    def test_admin_calls_use_service_key(self):
        with patch.object(self.client._client, "request") as mock_request:
            mock_request.return_value = httpx.Response(200, json={"id": "novo"})
            self.client.admin_create_user("novo@pac.org.br", "segredo", {"full_name": "Novo"})

        payload = mock_request.call_args.kwargs["json"]
        headers = mock_request.call_args.kwargs["headers"]
        self.assertTrue(payload["email_confirm"])
        self.assertEqual(payload["user_metadata"], {"full_name": "Novo"})
        self.assertEqual(headers["Authorization"], "Bearer service")

    def test_error_message_and_status(self):
        with patch.object(self.client._client, "request") as mock_request:
            mock_request.return_value = httpx.Response(400, json={"error_description": "Invalid login credentials"})
            with self.assertRaises(SupabaseError) as caught:
                self.client.sign_in_with_password("a@pac.org.br", "errada")

        self.assertEqual(str(caught.exception), "Invalid login credentials")
        self.assertEqual(caught.exception.status_code, 400)
        self.assertEqual(mock_request.call_args.kwargs["params"], {"grant_type": "password"})

    def test_transport_failure_has_no_status(self):
        with patch.object(self.client._client, "request", side_effect=httpx.ConnectError("recusado")):
            with self.assertRaises(SupabaseError) as caught:
                self.client.sign_out("token-1")
        self.assertIsNone(caught.exception.status_code)

    def test_empty_body_returns_none(self):
        with patch.object(self.client._client, "request", return_value=httpx.Response(204)):
            self.assertIsNone(self.client.admin_delete_user("abc"))


class StorageClientTests(unittest.TestCase):
    def setUp(self):
        self.client = SupabaseStorageClient(BASE_URL, "service")

    def tearDown(self):
        self.client.close()

    def test_upload_headers(self):
        with patch.object(self.client._client, "request", return_value=httpx.Response(200, json={})) as mock_request:
            path = self.client.upload("galeria-fotos", "galeria/1_a.jpg", b"data", "image/jpeg", upsert=True)

        self.assertEqual(path, "galeria/1_a.jpg")
        self.assertEqual(mock_request.call_args.args, ("POST", "/object/galeria-fotos/galeria/1_a.jpg"))
        headers = mock_request.call_args.kwargs["headers"]
        self.assertEqual(headers["x-upsert"], "true")
        self.assertEqual(headers["Content-Type"], "image/jpeg")

    def test_upload_failure(self):
        response = httpx.Response(413, json={"message": "Payload too large"})
        with patch.object(self.client._client, "request", return_value=response):
            with self.assertRaises(StorageError) as caught:
                self.client.upload("galeria-fotos", "x.jpg", b"data")
        self.assertEqual(caught.exception.status_code, 413)

    def test_delete_by_url(self):
        url = self.client.public_url("avatares-agentes", "avatars/123/foto 1.png")
        self.assertEqual(parse_public_url(url), ("avatares-agentes", "avatars/123/foto 1.png"))

        with patch.object(self.client._client, "request", return_value=httpx.Response(200, json=[])) as mock_request:
            self.assertTrue(self.client.delete_by_url(url))
            self.assertFalse(self.client.delete_by_url("https://cdn.example.com/foto.png"))

        self.assertEqual(mock_request.call_count, 1)
        self.assertEqual(mock_request.call_args.kwargs["json"], {"prefixes": ["avatars/123/foto 1.png"]})

    def test_remove_skips_empty(self):
        with patch.object(self.client._client, "request") as mock_request:
            self.client.remove("galeria-fotos", ["", None])
        mock_request.assert_not_called()
