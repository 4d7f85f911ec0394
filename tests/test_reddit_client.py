"""Tests for RedditClient over a mocked HTTP transport."""

from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio

from socialkit.core.models import PostType
from socialkit.errors import AuthError, NetworkError, NotFoundError, SocialKitError, ValidationError
from socialkit.reddit import RedditClient, RedditUserProfile


def link(name, author="alice", title="A title", **extra):
    data = {
        "name": name,
        "author": author,
        "author_fullname": f"t2_{author}",
        "title": title,
        "selftext": "body",
        "subreddit": "python",
        "permalink": f"/r/python/comments/{name[3:]}/a_title/",
        "created_utc": 1714564800,
        "score": 5,
        "ups": 5,
        "num_comments": 2,
        "is_self": True,
    }
    data.update(extra)
    return {"kind": "t3", "data": data}


def listing(children, after=None):
    return {"kind": "Listing", "data": {"children": children, "after": after}}


class FakeReddit:
    """Routes requests to canned responses and records every request."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], object] = {
            ("POST", "/api/v1/access_token"): {"access_token": "tok", "token_type": "bearer", "expires_in": 86400},
        }

    def route(self, method, path, response):
        self.routes[(method, path)] = response

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={"message": "Not Found", "error": 404})
        if callable(response):
            response = response(request)
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)

    def api_requests(self):
        return [r for r in self.requests if r.url.host == "oauth.reddit.com"]


@pytest.fixture
def reddit():
    return FakeReddit()


@pytest.fixture
def client(reddit):
    return RedditClient(
        "client-id",
        "client-secret",
        "me",
        "hunter2",
        transport=httpx.MockTransport(reddit.handler),
    )


@pytest_asyncio.fixture
async def logged_in(client):
    await client.login()
    yield client
    await client.close()


class TestLogin:
    """Password-grant authentication."""

    @pytest.mark.asyncio
    async def test_login_success(self, client, reddit):
        await client.login()

        token_request = reddit.requests[0]
        assert str(token_request.url) == "https://www.reddit.com/api/v1/access_token"
        form = parse_qs(token_request.content.decode())
        assert form["grant_type"] == ["password"]
        assert form["username"] == ["me"]
        assert form["password"] == ["hunter2"]
        assert token_request.headers["authorization"].startswith("Basic ")
        assert token_request.headers["user-agent"] == "socialkit/1.1.0 by me"
        assert client.is_authenticated is True

        await client.close()
        assert client.is_authenticated is False

    @pytest.mark.asyncio
    async def test_invalid_grant(self, client, reddit):
        reddit.route("POST", "/api/v1/access_token", {"error": "invalid_grant"})

        with pytest.raises(AuthError) as exc_info:
            await client.login()

        assert exc_info.value.error_code == "invalid_grant"
        assert client.is_authenticated is False

    @pytest.mark.asyncio
    async def test_bad_app_credentials(self, client, reddit):
        reddit.route("POST", "/api/v1/access_token", httpx.Response(401, json={"message": "Unauthorized"}))

        with pytest.raises(AuthError):
            await client.login()

    @pytest.mark.asyncio
    async def test_server_error(self, client, reddit):
        reddit.route("POST", "/api/v1/access_token", httpx.Response(503, text="unavailable"))

        with pytest.raises(NetworkError):
            await client.login()

    @pytest.mark.asyncio
    async def test_non_json_token_response(self, client, reddit):
        reddit.route("POST", "/api/v1/access_token", httpx.Response(200, text="<html>oops</html>"))

        with pytest.raises(NetworkError, match="non-JSON"):
            await client.login()

        assert client.is_authenticated is False

    @pytest.mark.asyncio
    async def test_context_manager(self, client, reddit):
        async with client as c:
            assert c.is_authenticated is True

        assert client.is_authenticated is False

    @pytest.mark.asyncio
    async def test_bearer_token_and_raw_json(self, logged_in, reddit):
        reddit.route("GET", "/api/v1/me", {"id": "abc", "name": "me"})

        await logged_in.get_user_profile()

        request = reddit.api_requests()[0]
        assert request.headers["authorization"] == "Bearer tok"
        assert request.url.params["raw_json"] == "1"


class TestUnauthenticated:
    """Operations before login() fail without sending anything."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "call",
        [
            lambda c: c.get_home_feed(),
            lambda c: c.get_subreddit_feed("python"),
            lambda c: c.get_timeline(),
            lambda c: c.get_profile_posts(),
            lambda c: c.get_user_profile(),
            lambda c: c.get_profile("bob"),
            lambda c: c.search_users("bob"),
            lambda c: c.reply_to_post("hi", "t3_abc"),
            lambda c: c.new_post("hi"),
            lambda c: c.like_post("t3_abc"),
        ],
    )
    async def test_rejected(self, client, reddit, call):
        with pytest.raises(AuthError, match="logged in"):
            await call(client)

        assert reddit.requests == []


class TestListings:
    """Home and subreddit feeds."""

    @pytest.mark.asyncio
    async def test_invalid_sort_before_any_request(self, client, reddit):
        with pytest.raises(ValidationError, match="top, hot, new, controversial"):
            await client.get_subreddit_feed("python", sort="bogus")

        with pytest.raises(ValidationError, match="best, hot, new"):
            await client.get_home_feed(sort="top")

        assert reddit.requests == []

    @pytest.mark.asyncio
    async def test_subreddit_paginates_with_after(self, reddit):
        pages = {
            None: listing([link("t3_a"), link("t3_b")], after="t3_b"),
            "t3_b": listing([link("t3_c"), link("t3_d")], after="t3_d"),
        }
        reddit.route("GET", "/r/python/new", lambda request: pages[request.url.params.get("after")])
        client = RedditClient("id", "secret", "me", "pw", page_size=2, transport=httpx.MockTransport(reddit.handler))

        async with client:
            posts = await client.get_subreddit_feed("r/python", limit=3, sort="new")

        assert [p.id for p in posts] == ["t3_a", "t3_b", "t3_c"]
        listing_requests = reddit.api_requests()
        assert [r.url.params.get("after") for r in listing_requests] == [None, "t3_b"]
        assert listing_requests[0].url.params["limit"] == "2"

    @pytest.mark.asyncio
    async def test_home_feed_sort_and_exhaustion(self, logged_in, reddit):
        reddit.route("GET", "/new", listing([link("t3_a")], after=None))

        posts = await logged_in.get_home_feed(limit=10, sort="new")

        assert len(posts) == 1
        assert posts[0].community == "python"
        assert len(reddit.api_requests()) == 1

    @pytest.mark.asyncio
    async def test_timeline_filters(self, logged_in, reddit):
        reddit.route(
            "GET",
            "/best",
            listing(
                [
                    link("t3_mine", author="me"),
                    link("t3_xpost", crosspost_parent="t3_orig"),
                    link("t3_plain"),
                ]
            ),
        )

        posts = await logged_in.get_timeline(type="post", include_self=False)

        assert [p.id for p in posts] == ["t3_plain"]

    @pytest.mark.asyncio
    async def test_profile_posts_overview(self, logged_in, reddit):
        comment = {"kind": "t1", "data": {"name": "t1_c", "author": "bob", "body": "nice", "link_title": "A title"}}
        reddit.route("GET", "/user/bob/overview", listing([comment, link("t3_p", author="bob")]))

        replies = await logged_in.get_profile_posts("bob", type=PostType.REPLY)

        assert [p.id for p in replies] == ["t1_c"]
        assert replies[0].text == "nice"

    @pytest.mark.asyncio
    async def test_server_error_mid_listing_returns_partial(self, logged_in, reddit):
        def respond(request):
            if request.url.params.get("after"):
                return httpx.Response(500, text="oops")
            return listing([link("t3_a")], after="t3_a")

        reddit.route("GET", "/hot", respond)

        posts = await logged_in.get_home_feed(limit=5, sort="hot")

        assert [p.id for p in posts] == ["t3_a"]

    @pytest.mark.asyncio
    async def test_non_json_page_returns_partial(self, logged_in, reddit):
        def respond(request):
            if request.url.params.get("after"):
                return httpx.Response(200, text="<html>maintenance</html>")
            return listing([link("t3_a")], after="t3_a")

        reddit.route("GET", "/hot", respond)

        posts = await logged_in.get_home_feed(limit=5, sort="hot")

        assert [p.id for p in posts] == ["t3_a"]

    @pytest.mark.asyncio
    async def test_non_json_body_is_network_error(self, logged_in, reddit):
        reddit.route("GET", "/api/v1/me", httpx.Response(200, text="<html>maintenance</html>"))

        with pytest.raises(NetworkError, match="not JSON"):
            await logged_in.get_user_profile()

    @pytest.mark.asyncio
    async def test_expired_token_propagates(self, logged_in, reddit):
        reddit.route("GET", "/best", httpx.Response(401, json={"message": "Unauthorized"}))

        with pytest.raises(AuthError):
            await logged_in.get_home_feed()


class TestProfiles:
    """Profile lookups."""

    @pytest.mark.asyncio
    async def test_get_user_profile(self, logged_in, reddit):
        reddit.route(
            "GET",
            "/api/v1/me",
            {
                "id": "abc",
                "name": "me",
                "comment_karma": 10,
                "link_karma": 5,
                "total_karma": 15,
                "created_utc": 1609459200,
                "is_gold": False,
                "verified": True,
                "icon_img": "https://styles.redditmedia.com/icon.png",
                "subreddit": {"title": "Me", "public_description": "hi", "url": "/user/me/"},
            },
        )

        profile = await logged_in.get_user_profile()

        assert isinstance(profile, RedditUserProfile)
        assert profile.name == "me"
        assert profile.karma == 15
        assert profile.post_karma == 5
        assert profile.verified is True
        assert profile.url == "https://reddit.com/user/me/"
        assert profile.day_age > 0

    @pytest.mark.asyncio
    async def test_get_profile(self, logged_in, reddit):
        reddit.route(
            "GET",
            "/user/bob/about",
            {"kind": "t2", "data": {"id": "b1", "name": "bob", "is_friend": False, "subreddit": {"subscribers": 7}}},
        )

        profile = await logged_in.get_profile("bob")

        assert profile.handle == "bob"
        assert profile.counts.followers == 7
        assert profile.following is False
        assert profile.followed_by is None

    @pytest.mark.asyncio
    async def test_get_profile_missing(self, logged_in):
        with pytest.raises(NotFoundError):
            await logged_in.get_profile("ghost")

    @pytest.mark.asyncio
    async def test_search_users(self, logged_in, reddit):
        reddit.route(
            "GET",
            "/users/search",
            listing([{"kind": "t2", "data": {"id": "1", "name": "bobby"}}, {"kind": "t2", "data": {}}]),
        )

        users = await logged_in.search_users("bob")

        assert [u.handle for u in users] == ["bobby"]
        assert reddit.api_requests()[0].url.params["q"] == "bob"


class TestPublishing:
    """Comment, submit and vote."""

    @pytest.mark.asyncio
    async def test_reply_to_post(self, logged_in, reddit):
        reddit.route("GET", "/api/info", listing([link("t3_abc")]))
        reddit.route(
            "POST",
            "/api/comment",
            {"json": {"errors": [], "data": {"things": [{"kind": "t1", "data": {"name": "t1_new", "permalink": "/r/python/comments/abc/_/new/"}}]}}},
        )

        result = await logged_in.reply_to_post("Nice!", "t3_abc")

        form = parse_qs(reddit.api_requests()[-1].content.decode())
        assert form["thing_id"] == ["t3_abc"]
        assert form["text"] == ["Nice!"]
        assert result.id == "t1_new"
        assert result.url == "https://reddit.com/r/python/comments/abc/_/new/"

    @pytest.mark.asyncio
    async def test_reply_parent_not_found(self, logged_in, reddit):
        reddit.route("GET", "/api/info", listing([]))

        with pytest.raises(NotFoundError, match="Parent post not found"):
            await logged_in.reply_to_post("Nice!", "t3_gone")

        assert all(r.url.path != "/api/comment" for r in reddit.requests)

    @pytest.mark.asyncio
    async def test_new_post_defaults_to_profile(self, logged_in, reddit):
        reddit.route(
            "POST",
            "/api/submit",
            {"json": {"errors": [], "data": {"name": "t3_new", "url": "https://reddit.com/r/u_me/comments/new/"}}},
        )

        result = await logged_in.new_post("First line\nmore", ["https://example.com/a.png"])

        form = parse_qs(reddit.api_requests()[-1].content.decode())
        assert form["sr"] == ["u_me"]
        assert form["kind"] == ["self"]
        assert form["title"] == ["First line"]
        assert form["text"] == ["First line\nmore\n\nhttps://example.com/a.png"]
        assert result.id == "t3_new"

    @pytest.mark.asyncio
    async def test_new_post_api_error(self, logged_in, reddit):
        reddit.route(
            "POST",
            "/api/submit",
            {"json": {"errors": [["SUBREDDIT_NOEXIST", "that subreddit doesn't exist", "sr"]]}},
        )

        with pytest.raises(SocialKitError) as exc_info:
            await logged_in.new_post("hi", subreddit="nope", title="t")

        assert exc_info.value.error_code == "SUBREDDIT_NOEXIST"

    @pytest.mark.asyncio
    async def test_new_post_needs_title(self, logged_in):
        with pytest.raises(ValidationError):
            await logged_in.new_post("   ")

    @pytest.mark.asyncio
    async def test_like_post(self, logged_in, reddit):
        reddit.route("POST", "/api/vote", {})

        result = await logged_in.like_post("t3_abc")

        form = parse_qs(reddit.api_requests()[-1].content.decode())
        assert form == {"id": ["t3_abc"], "dir": ["1"]}
        assert result.id == "t3_abc"
