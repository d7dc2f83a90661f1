"""
tests/test_api_quotes.py -- Integration tests for /quotes.

Covers:
  - only members of a group may post to it (403 otherwise, 404 for unknown group)
  - list/random only see quotes from the caller's groups
  - pagination clamping: page=0 acts as page=1, limit=999 and limit=0 act as 10
  - only the uploader may update or delete (403 otherwise)
"""

from __future__ import annotations

import pytest


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def book_club(register, create_group):
    """ada and bob in 'book-club'; eve registered but outside it."""
    ada_token, ada = register("ada@example.com")
    bob_token, bob = register("bob@example.com")
    eve_token, eve = register("eve@example.com")
    create_group(ada_token, "book-club", [bob["id"]])
    return {
        "ada": (ada_token, ada),
        "bob": (bob_token, bob),
        "eve": (eve_token, eve),
    }


def _post_quote(client, token: str, text: str, author="Wilde", group_id: str = "book-club"):
    return client.post("/quotes", json={"text": text, "author": author, "group_id": group_id}, headers=_auth(token))


class TestCreateQuote:
    def test_member_can_post(self, client, book_club):
        token, ada = book_club["ada"]
        resp = _post_quote(client, token, "Be yourself; everyone else is already taken.")
        assert resp.status_code == 201, resp.text
        data = resp.json()["data"]
        assert data["uploader_id"] == ada["id"]
        assert data["uploader"] == "ada"
        assert data["group_id"] == "book-club"
        assert data["author"] == "Wilde"

    def test_author_optional(self, client, book_club):
        token, _ = book_club["ada"]
        resp = client.post("/quotes", json={"text": "Anonymous", "group_id": "book-club"}, headers=_auth(token))
        assert resp.status_code == 201
        assert resp.json()["data"]["author"] is None

    def test_non_member_forbidden(self, client, book_club):
        """A valid quote is still rejected when the poster is not in the group."""
        token, _ = book_club["eve"]
        resp = _post_quote(client, token, "sneaky")
        assert resp.status_code == 403
        assert resp.json()["code"] == "FORBIDDEN"

    def test_unknown_group(self, client, book_club):
        token, _ = book_club["ada"]
        resp = _post_quote(client, token, "lost", group_id="nowhere")
        assert resp.status_code == 404
        assert resp.json()["message"] == "Group not found"

    def test_requires_auth(self, client):
        resp = _post_quote(client, "", "anon")
        assert resp.status_code == 401

    def test_empty_text_rejected(self, client, book_club):
        token, _ = book_club["ada"]
        resp = _post_quote(client, token, "")
        assert resp.status_code == 400
        assert resp.json()["code"] == "INVALID_INPUT"


class TestListQuotes:
    def test_scoped_to_callers_groups(self, client, book_club, create_group):
        ada_token, _ = book_club["ada"]
        eve_token, eve = book_club["eve"]
        create_group(eve_token, "eve-only", [eve["id"]])
        _post_quote(client, ada_token, "club quote")
        _post_quote(client, eve_token, "private quote", group_id="eve-only")

        ada_view = client.get("/quotes", headers=_auth(ada_token)).json()["data"]
        eve_view = client.get("/quotes", headers=_auth(eve_token)).json()["data"]
        assert [q["text"] for q in ada_view] == ["club quote"]
        assert [q["text"] for q in eve_view] == ["private quote"]

    def test_no_groups_is_empty_list(self, client, register):
        token, _ = register("lonely@example.com")
        resp = client.get("/quotes", headers=_auth(token))
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "data": []}

    def test_newest_first_and_author_filter(self, client, book_club):
        token, _ = book_club["ada"]
        _post_quote(client, token, "first", author="Wilde")
        _post_quote(client, token, "second", author="Twain")
        _post_quote(client, token, "third", author="Wilde")

        all_quotes = client.get("/quotes", headers=_auth(token)).json()["data"]
        assert [q["text"] for q in all_quotes] == ["third", "second", "first"]

        wilde = client.get("/quotes", params={"author": "Wilde"}, headers=_auth(token)).json()["data"]
        assert [q["text"] for q in wilde] == ["third", "first"]

    def test_pagination_clamping(self, client, book_club):
        """page=0 == page=1; limit=999 and limit=0 both fall back to 10."""
        token, _ = book_club["ada"]
        for i in range(12):
            _post_quote(client, token, f"q{i}")

        def texts(**params):
            resp = client.get("/quotes", params=params, headers=_auth(token))
            assert resp.status_code == 200, resp.text
            return [q["text"] for q in resp.json()["data"]]

        assert texts(page=0, limit=5) == texts(page=1, limit=5)
        assert len(texts(limit=999)) == 10
        assert len(texts(limit=0)) == 10
        assert len(texts(limit=50)) == 12
        assert texts(page=2, limit=5) == ["q6", "q5", "q4", "q3", "q2"]
        assert texts(page=9, limit=5) == []

    def test_huge_page_is_empty(self, client, book_club):
        token, _ = book_club["ada"]
        _post_quote(client, token, "only one")
        resp = client.get("/quotes", params={"page": 10**20, "limit": 50}, headers=_auth(token))
        assert resp.status_code == 200, resp.text
        assert resp.json()["data"] == []

    def test_group_filter_requires_membership(self, client, book_club):
        eve_token, _ = book_club["eve"]
        resp = client.get("/quotes", params={"group_id": "book-club"}, headers=_auth(eve_token))
        assert resp.status_code == 403

    def test_non_integer_page(self, client, book_club):
        token, _ = book_club["ada"]
        resp = client.get("/quotes", params={"page": "abc"}, headers=_auth(token))
        assert resp.status_code == 400
        assert resp.json()["code"] == "INVALID_INPUT"


class TestRandomQuote:
    def test_random_from_visible(self, client, book_club):
        token, _ = book_club["bob"]
        _post_quote(client, book_club["ada"][0], "only one")
        resp = client.get("/quotes/random", headers=_auth(token))
        assert resp.status_code == 200
        assert resp.json()["data"]["text"] == "only one"
        assert resp.json()["data"]["uploader"] == "ada"

    def test_random_author_no_match(self, client, book_club):
        token, _ = book_club["ada"]
        _post_quote(client, token, "something", author="Wilde")
        resp = client.get("/quotes/random", params={"author": "Nobody"}, headers=_auth(token))
        assert resp.status_code == 404
        assert resp.json()["message"] == "No quotes found"

    def test_random_invisible_to_outsider(self, client, book_club):
        _post_quote(client, book_club["ada"][0], "club secret")
        resp = client.get("/quotes/random", headers=_auth(book_club["eve"][0]))
        assert resp.status_code == 404


class TestSingleQuote:
    def test_get_by_member(self, client, book_club):
        quote = _post_quote(client, book_club["ada"][0], "hello").json()["data"]
        resp = client.get(f"/quotes/{quote['id']}", headers=_auth(book_club["bob"][0]))
        assert resp.status_code == 200
        assert resp.json()["data"]["text"] == "hello"

    def test_get_by_outsider_forbidden(self, client, book_club):
        quote = _post_quote(client, book_club["ada"][0], "hello").json()["data"]
        resp = client.get(f"/quotes/{quote['id']}", headers=_auth(book_club["eve"][0]))
        assert resp.status_code == 403

    def test_get_missing(self, client, book_club):
        resp = client.get("/quotes/no-such-id", headers=_auth(book_club["ada"][0]))
        assert resp.status_code == 404
        assert resp.json()["message"] == "Quote not found"


class TestMutateQuote:
    def test_uploader_can_update(self, client, book_club):
        token, _ = book_club["ada"]
        quote = _post_quote(client, token, "draft").json()["data"]
        resp = client.patch(
            f"/quotes/{quote['id']}",
            json={"text": "final", "author": "Twain"},
            headers=_auth(token),
        )
        assert resp.status_code == 200, resp.text
        assert resp.json()["data"]["text"] == "final"
        assert resp.json()["data"]["author"] == "Twain"

    def test_other_member_cannot_update(self, client, book_club, api_store):
        """Membership is not enough: only the uploader may edit."""
        quote = _post_quote(client, book_club["ada"][0], "mine").json()["data"]
        resp = client.patch(
            f"/quotes/{quote['id']}",
            json={"text": "hijacked", "author": "bob"},
            headers=_auth(book_club["bob"][0]),
        )
        assert resp.status_code == 403
        assert resp.json()["message"] == "Not authorized to update this quote"
        stored = api_store.quotes.get_by_id(quote["id"])
        assert (stored.text, stored.author, stored.uploader_id) == ("mine", "Wilde", book_club["ada"][1]["id"])

    def test_update_missing(self, client, book_club):
        resp = client.patch("/quotes/nope", json={"text": "x"}, headers=_auth(book_club["ada"][0]))
        assert resp.status_code == 404

    def test_uploader_can_delete(self, client, book_club):
        token, _ = book_club["ada"]
        quote = _post_quote(client, token, "bye").json()["data"]
        resp = client.delete(f"/quotes/{quote['id']}", headers=_auth(token))
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "data": None}
        assert client.get(f"/quotes/{quote['id']}", headers=_auth(token)).status_code == 404

    def test_other_member_cannot_delete(self, client, book_club):
        quote = _post_quote(client, book_club["ada"][0], "mine").json()["data"]
        resp = client.delete(f"/quotes/{quote['id']}", headers=_auth(book_club["bob"][0]))
        assert resp.status_code == 403
