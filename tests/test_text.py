from repo_spec_agent.parser.text import block_end, matching_close, mentions_auth, status_codes


class TestMentionsAuth:
    def test_middleware_names(self):
        assert mentions_auth("router.post('/users', requireAuth, create)")
        assert mentions_auth("app.get('/me', passport.authenticate('jwt'), me)")
        assert mentions_auth("router.delete('/x', verifyToken, remove)")
        assert mentions_auth("router.use(authMiddleware)")

    def test_words_that_only_start_with_auth(self):
        assert not mentions_auth("const authorName = req.query.authorName;")
        assert not mentions_auth("// list the authors of a book")

    def test_route_paths_are_ignored(self):
        assert not mentions_auth("router.get('/authors', (req, res) => { res.json([]); })")
        assert not mentions_auth('router.get("/auth/callback", handler)')


class TestBrackets:
    def test_matching_close_skips_strings(self):
        text = "call(')', (a) => { return a; })"
        assert matching_close(text, 4) == len(text) - 1

    def test_block_end(self):
        text = "function f() { if (x) { y(); } }\nrest"
        assert text[: block_end(text, text.index("{"))] == "function f() { if (x) { y(); } }"


class TestStatusCodes:
    def test_status_calls(self):
        assert status_codes("res.status(201).json(x); res.sendStatus(204); res.status(201)") == ["201", "204"]
