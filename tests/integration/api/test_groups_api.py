"""Integration tests for Groups API."""

from collections.abc import Awaitable, Callable
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.auth.provider import TokenUser
from infrastructure.database.models import FreetModel, GroupMemberModel, GroupPostModel

Headers = Callable[[TokenUser], dict[str, str]]


@pytest.fixture
async def alice(make_user: Callable[[str], Awaitable[TokenUser]]) -> TokenUser:
    return await make_user("alice")


@pytest.fixture
async def bob(make_user: Callable[[str], Awaitable[TokenUser]]) -> TokenUser:
    return await make_user("bob")


@pytest.fixture
async def carol(make_user: Callable[[str], Awaitable[TokenUser]]) -> TokenUser:
    return await make_user("carol")


async def _create_group(
    client: AsyncClient,
    headers: dict[str, str],
    name: str = "Research",
    is_private: object = None,
) -> dict:
    body: dict = {"name": name}
    if is_private is not None:
        body["isPrivate"] = is_private
    response = await client.post("/api/v1/groups", json=body, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()["data"]


class TestGroupsLifecycle:
    """End-to-end walk through a group's life."""

    @pytest.mark.asyncio
    async def test_shared_freet_lifecycle(
        self,
        client: AsyncClient,
        auth_headers: Headers,
        make_freet: Callable[[UUID, str], Awaitable[UUID]],
        alice: TokenUser,
        bob: TokenUser,
    ) -> None:
        group = await _create_group(client, auth_headers(alice), "Research")
        group_id = group["id"]
        assert group["administrators"] == ["alice"]
        assert group["members"] == ["alice"]
        assert group["posts"] == []
        assert group["isPrivate"] is False

        # Bob joins the public group on his own
        response = await client.patch(
            f"/api/v1/groups/{group_id}/member", headers=auth_headers(bob)
        )
        assert response.status_code == 200
        assert response.json()["data"]["members"] == ["alice", "bob"]

        # Bob shares a freet
        freet_id = await make_freet(bob.id, "first result")
        response = await client.patch(
            f"/api/v1/groups/{group_id}/post",
            json={"freetId": str(freet_id)},
            headers=auth_headers(bob),
        )
        assert response.status_code == 200
        posts = response.json()["data"]["posts"]
        assert [p["id"] for p in posts] == [str(freet_id)]
        assert posts[0]["author"] == "bob"
        assert posts[0]["inGroup"] is True

        # Alice promotes Bob
        response = await client.patch(
            f"/api/v1/groups/{group_id}/admin",
            json={"userId": str(bob.id)},
            headers=auth_headers(alice),
        )
        assert response.status_code == 200
        assert response.json()["data"]["administrators"] == ["alice", "bob"]

        # Bob makes it private
        response = await client.patch(
            f"/api/v1/groups/{group_id}?isPrivate=true", headers=auth_headers(bob)
        )
        assert response.status_code == 200
        assert response.json()["data"]["isPrivate"] is True

        response = await client.get("/api/v1/groups/admin", headers=auth_headers(bob))
        assert [g["name"] for g in response.json()["data"]] == ["Research"]

        # Alice deletes it; the freet goes with it
        response = await client.delete(f"/api/v1/groups/{group_id}", headers=auth_headers(alice))
        assert response.status_code == 200

        response = await client.get(f"/api/v1/groups/{group_id}", headers=auth_headers(alice))
        assert response.status_code == 404

        other = await _create_group(client, auth_headers(alice), "Other")
        response = await client.patch(
            f"/api/v1/groups/{other['id']}/post",
            json={"freetId": str(freet_id)},
            headers=auth_headers(alice),
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_private_research_group_opens_up(
        self,
        client: AsyncClient,
        auth_headers: Headers,
        alice: TokenUser,
        bob: TokenUser,
        carol: TokenUser,
    ) -> None:
        group = await _create_group(client, auth_headers(alice), "Research", "true")
        url = f"/api/v1/groups/{group['id']}"
        assert group["isPrivate"] is True
        assert group["members"] == ["alice"]
        assert group["administrators"] == ["alice"]

        # Bob cannot add himself to a private group
        response = await client.patch(
            f"{url}/member", json={"userId": str(bob.id)}, headers=auth_headers(bob)
        )
        assert response.status_code == 403

        # Alice adds him
        response = await client.patch(
            f"{url}/member", json={"userId": str(bob.id)}, headers=auth_headers(alice)
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["members"] == ["alice", "bob"]
        assert data["administrators"] == ["alice"]

        response = await client.patch(
            f"{url}/admin", json={"userId": str(bob.id)}, headers=auth_headers(alice)
        )
        assert response.status_code == 200

        # Bob, now an admin, makes the group public
        response = await client.patch(f"{url}?isPrivate=false", headers=auth_headers(bob))
        assert response.status_code == 200
        assert response.json()["data"]["isPrivate"] is False

        # Carol can now join on her own
        response = await client.patch(f"{url}/member", headers=auth_headers(carol))
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["members"] == ["alice", "bob", "carol"]
        assert data["administrators"] == ["alice", "bob"]

    @pytest.mark.asyncio
    async def test_delete_removes_every_freet(
        self,
        client: AsyncClient,
        auth_headers: Headers,
        make_freet: Callable[[UUID, str], Awaitable[UUID]],
        session_factory: async_sessionmaker[AsyncSession],
        alice: TokenUser,
    ) -> None:
        group = await _create_group(client, auth_headers(alice), "Research")
        freet_ids = [await make_freet(alice.id, f"note {i}") for i in range(3)]
        for freet_id in freet_ids:
            response = await client.patch(
                f"/api/v1/groups/{group['id']}/post",
                json={"freetId": str(freet_id)},
                headers=auth_headers(alice),
            )
            assert response.status_code == 200
        assert len(response.json()["data"]["posts"]) == 3

        response = await client.delete(
            f"/api/v1/groups/{group['id']}", headers=auth_headers(alice)
        )
        assert response.status_code == 200

        async with session_factory() as session:
            freets = await session.execute(
                select(func.count()).select_from(FreetModel).where(FreetModel.id.in_(freet_ids))
            )
            links = await session.execute(select(func.count()).select_from(GroupPostModel))
            memberships = await session.execute(
                select(func.count()).select_from(GroupMemberModel)
            )
        assert freets.scalar_one() == 0
        assert links.scalar_one() == 0
        assert memberships.scalar_one() == 0

    @pytest.mark.asyncio
    async def test_member_lists_sorted_by_name_descending(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser
    ) -> None:
        for name in ("Alpha", "Gamma", "Beta"):
            await _create_group(client, auth_headers(alice), name)

        response = await client.get("/api/v1/groups/member", headers=auth_headers(alice))

        body = response.json()
        assert [g["name"] for g in body["data"]] == ["Gamma", "Beta", "Alpha"]
        assert body["meta"]["total"] == 3


class TestCreateGroup:
    @pytest.mark.asyncio
    async def test_anonymous_is_forbidden(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/groups", json={"name": "Research"})

        assert response.status_code == 403
        assert response.json()["error_code"] == "NOT_AUTHENTICATED"

    @pytest.mark.asyncio
    async def test_name_is_case_insensitively_unique(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser, bob: TokenUser
    ) -> None:
        await _create_group(client, auth_headers(alice), "Research")

        response = await client.post(
            "/api/v1/groups", json={"name": " research "}, headers=auth_headers(bob)
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "GROUP_NAME_TAKEN"

    @pytest.mark.asyncio
    async def test_empty_name(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser
    ) -> None:
        response = await client.post(
            "/api/v1/groups", json={"name": "   "}, headers=auth_headers(alice)
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_bad_privacy_flag(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser
    ) -> None:
        response = await client.post(
            "/api/v1/groups",
            json={"name": "Research", "isPrivate": "sometimes"},
            headers=auth_headers(alice),
        )

        assert response.status_code == 412

    @pytest.mark.asyncio
    async def test_string_flag_creates_private_group(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser
    ) -> None:
        group = await _create_group(client, auth_headers(alice), "Secret", "true")

        assert group["isPrivate"] is True


class TestVisibility:
    @pytest.mark.asyncio
    async def test_private_group_hidden_from_outsiders(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser, bob: TokenUser
    ) -> None:
        group = await _create_group(client, auth_headers(alice), "Secret", True)

        response = await client.get(f"/api/v1/groups/{group['id']}", headers=auth_headers(bob))

        assert response.status_code == 403
        assert response.json()["error_code"] == "GROUP_NOT_VISIBLE"

    @pytest.mark.asyncio
    async def test_unknown_group_is_not_found(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser
    ) -> None:
        for group_id in (str(uuid4()), "not-an-id"):
            response = await client.get(f"/api/v1/groups/{group_id}", headers=auth_headers(alice))
            assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_group_reported_before_anonymous_caller(
        self, client: AsyncClient
    ) -> None:
        response = await client.delete(f"/api/v1/groups/{uuid4()}")

        assert response.status_code == 404


class TestMembership:
    @pytest.mark.asyncio
    async def test_self_join_private_group_forbidden(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser, bob: TokenUser
    ) -> None:
        group = await _create_group(client, auth_headers(alice), "Secret", True)

        response = await client.patch(
            f"/api/v1/groups/{group['id']}/member", headers=auth_headers(bob)
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "GROUP_NOT_JOINABLE"

    @pytest.mark.asyncio
    async def test_admin_adds_to_private_group_by_username(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser, bob: TokenUser
    ) -> None:
        group = await _create_group(client, auth_headers(alice), "Secret", True)

        response = await client.patch(
            f"/api/v1/groups/{group['id']}/member",
            json={"username": "BOB"},
            headers=auth_headers(alice),
        )

        assert response.status_code == 200
        assert response.json()["data"]["members"] == ["alice", "bob"]

    @pytest.mark.asyncio
    async def test_duplicate_member_conflicts(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser, bob: TokenUser
    ) -> None:
        group = await _create_group(client, auth_headers(alice))
        url = f"/api/v1/groups/{group['id']}/member"

        first = await client.patch(url, json={"userId": str(bob.id)}, headers=auth_headers(alice))
        second = await client.patch(url, json={"userId": str(bob.id)}, headers=auth_headers(alice))

        assert first.status_code == 200
        assert second.status_code == 409
        assert second.json()["error_code"] == "ALREADY_A_GROUP_MEMBER"

    @pytest.mark.asyncio
    async def test_malformed_user_id(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser
    ) -> None:
        group = await _create_group(client, auth_headers(alice))

        response = await client.patch(
            f"/api/v1/groups/{group['id']}/member",
            json={"userId": "bob"},
            headers=auth_headers(alice),
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_IDENTIFIER"

    @pytest.mark.asyncio
    async def test_unknown_user(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser
    ) -> None:
        group = await _create_group(client, auth_headers(alice))

        response = await client.patch(
            f"/api/v1/groups/{group['id']}/member",
            json={"userId": str(uuid4())},
            headers=auth_headers(alice),
        )

        assert response.status_code == 404


class TestPromoteAdmin:
    @pytest.mark.asyncio
    async def test_non_member_cannot_be_promoted(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser, bob: TokenUser
    ) -> None:
        group = await _create_group(client, auth_headers(alice))

        response = await client.patch(
            f"/api/v1/groups/{group['id']}/admin",
            json={"userId": str(bob.id)},
            headers=auth_headers(alice),
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "NOT_A_GROUP_MEMBER"

    @pytest.mark.asyncio
    async def test_promoting_twice_conflicts(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser, bob: TokenUser
    ) -> None:
        group = await _create_group(client, auth_headers(alice))
        await client.patch(f"/api/v1/groups/{group['id']}/member", headers=auth_headers(bob))
        url = f"/api/v1/groups/{group['id']}/admin"

        first = await client.patch(url, json={"userId": str(bob.id)}, headers=auth_headers(alice))
        second = await client.patch(url, json={"userId": str(bob.id)}, headers=auth_headers(alice))

        assert first.status_code == 200
        assert second.status_code == 409
        data = first.json()["data"]
        assert set(data["administrators"]) <= set(data["members"])

    @pytest.mark.asyncio
    async def test_member_cannot_promote(
        self,
        client: AsyncClient,
        auth_headers: Headers,
        alice: TokenUser,
        bob: TokenUser,
        carol: TokenUser,
    ) -> None:
        group = await _create_group(client, auth_headers(alice))
        for user in (bob, carol):
            await client.patch(f"/api/v1/groups/{group['id']}/member", headers=auth_headers(user))

        response = await client.patch(
            f"/api/v1/groups/{group['id']}/admin",
            json={"userId": str(carol.id)},
            headers=auth_headers(bob),
        )

        assert response.status_code == 403
        assert response.json()["error_code"] == "NOT_A_GROUP_ADMIN"


class TestPrivacy:
    @pytest.mark.asyncio
    async def test_missing_flag(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser
    ) -> None:
        group = await _create_group(client, auth_headers(alice))

        response = await client.patch(f"/api/v1/groups/{group['id']}", headers=auth_headers(alice))

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_blank_flag_leaves_group_unchanged(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser
    ) -> None:
        group = await _create_group(client, auth_headers(alice))

        response = await client.patch(
            f"/api/v1/groups/{group['id']}?isPrivate=", headers=auth_headers(alice)
        )

        assert response.status_code == 200
        assert response.json()["data"]["isPrivate"] is False

    @pytest.mark.asyncio
    async def test_bad_flag(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser
    ) -> None:
        group = await _create_group(client, auth_headers(alice))

        response = await client.patch(
            f"/api/v1/groups/{group['id']}?isPrivate=TRUE", headers=auth_headers(alice)
        )

        assert response.status_code == 412


class TestGroupFreets:
    @pytest.mark.asyncio
    async def test_non_member_cannot_attach(
        self,
        client: AsyncClient,
        auth_headers: Headers,
        make_freet: Callable[[UUID, str], Awaitable[UUID]],
        alice: TokenUser,
        bob: TokenUser,
    ) -> None:
        group = await _create_group(client, auth_headers(alice))
        freet_id = await make_freet(bob.id, "hi")

        response = await client.patch(
            f"/api/v1/groups/{group['id']}/post",
            json={"freetId": str(freet_id)},
            headers=auth_headers(bob),
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_freet_belongs_to_one_group(
        self,
        client: AsyncClient,
        auth_headers: Headers,
        make_freet: Callable[[UUID, str], Awaitable[UUID]],
        alice: TokenUser,
    ) -> None:
        first = await _create_group(client, auth_headers(alice), "First")
        second = await _create_group(client, auth_headers(alice), "Second")
        freet_id = await make_freet(alice.id, "hi")
        body = {"freetId": str(freet_id)}

        await client.patch(
            f"/api/v1/groups/{first['id']}/post", json=body, headers=auth_headers(alice)
        )
        again = await client.patch(
            f"/api/v1/groups/{first['id']}/post", json=body, headers=auth_headers(alice)
        )
        elsewhere = await client.patch(
            f"/api/v1/groups/{second['id']}/post", json=body, headers=auth_headers(alice)
        )

        assert again.status_code == 409
        assert again.json()["error_code"] == "FREET_ALREADY_IN_GROUP"
        assert elsewhere.status_code == 409
        assert elsewhere.json()["error_code"] == "FREET_IN_ANOTHER_GROUP"

    @pytest.mark.asyncio
    async def test_detach_deletes_the_freet(
        self,
        client: AsyncClient,
        auth_headers: Headers,
        make_freet: Callable[[UUID, str], Awaitable[UUID]],
        alice: TokenUser,
    ) -> None:
        group = await _create_group(client, auth_headers(alice))
        freet_id = await make_freet(alice.id, "hi")
        body = {"freetId": str(freet_id)}
        await client.patch(f"/api/v1/groups/{group['id']}/post", json=body, headers=auth_headers(alice))

        response = await client.patch(
            f"/api/v1/groups/{group['id']}/post/remove", json=body, headers=auth_headers(alice)
        )
        assert response.status_code == 200
        assert response.json()["data"]["posts"] == []

        again = await client.patch(
            f"/api/v1/groups/{group['id']}/post/remove", json=body, headers=auth_headers(alice)
        )
        assert again.status_code == 404

    @pytest.mark.asyncio
    async def test_detach_freet_not_in_group(
        self,
        client: AsyncClient,
        auth_headers: Headers,
        make_freet: Callable[[UUID, str], Awaitable[UUID]],
        alice: TokenUser,
    ) -> None:
        group = await _create_group(client, auth_headers(alice))
        freet_id = await make_freet(alice.id, "loose")

        response = await client.patch(
            f"/api/v1/groups/{group['id']}/post/remove",
            json={"freetId": str(freet_id)},
            headers=auth_headers(alice),
        )

        assert response.status_code == 409
        assert response.json()["error_code"] == "FREET_NOT_IN_GROUP"

    @pytest.mark.asyncio
    async def test_missing_freet_id(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser
    ) -> None:
        group = await _create_group(client, auth_headers(alice))

        response = await client.patch(
            f"/api/v1/groups/{group['id']}/post", json={}, headers=auth_headers(alice)
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "MISSING_IDENTIFIER"

    @pytest.mark.asyncio
    async def test_reconcile_with_nothing_dangling(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser
    ) -> None:
        group = await _create_group(client, auth_headers(alice))

        response = await client.patch(
            f"/api/v1/groups/{group['id']}/post/reconcile", headers=auth_headers(alice)
        )

        assert response.status_code == 200
        assert response.json()["removed"] == []


class TestMissingBodies:
    """A request without a body still goes through the operation's checks."""

    @pytest.mark.asyncio
    async def test_anonymous_create_without_body(self, client: AsyncClient) -> None:
        response = await client.post("/api/v1/groups")

        assert response.status_code == 403
        assert response.json()["error_code"] == "NOT_AUTHENTICATED"

    @pytest.mark.asyncio
    async def test_signed_in_create_without_body(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser
    ) -> None:
        response = await client.post("/api/v1/groups", headers=auth_headers(alice))

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_GROUP_NAME"

    @pytest.mark.asyncio
    async def test_anonymous_attach_without_body(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser
    ) -> None:
        group = await _create_group(client, auth_headers(alice))

        response = await client.patch(f"/api/v1/groups/{group['id']}/post")

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_detach_without_body(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser
    ) -> None:
        group = await _create_group(client, auth_headers(alice))

        response = await client.patch(f"/api/v1/groups/{group['id']}/post/remove")

        assert response.status_code == 400
        assert response.json()["error_code"] == "MISSING_IDENTIFIER"

    @pytest.mark.asyncio
    async def test_promote_without_body(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser
    ) -> None:
        group = await _create_group(client, auth_headers(alice))

        response = await client.patch(
            f"/api/v1/groups/{group['id']}/admin", headers=auth_headers(alice)
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "MISSING_IDENTIFIER"


class TestPrivacyFlagTypes:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [1, 5, 0])
    async def test_numbers_are_rejected(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser, value: int
    ) -> None:
        response = await client.post(
            "/api/v1/groups",
            json={"name": "Research", "isPrivate": value},
            headers=auth_headers(alice),
        )

        assert response.status_code == 412
        assert response.json()["error_code"] == "INVALID_PRIVACY_SETTING"

        listed = await client.get("/api/v1/groups/member", headers=auth_headers(alice))
        assert listed.json()["data"] == []


class TestBlankGroupId:
    @pytest.mark.asyncio
    async def test_whitespace_id_is_bad_request(
        self, client: AsyncClient, auth_headers: Headers, alice: TokenUser
    ) -> None:
        response = await client.get("/api/v1/groups/%20", headers=auth_headers(alice))

        assert response.status_code == 400
        assert response.json()["error_code"] == "MISSING_IDENTIFIER"
