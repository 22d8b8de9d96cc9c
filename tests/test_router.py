"""Tests for classifier and semantic routing."""

import pytest

from orchestra.agents.router import ClassifierRouter, SemanticRouter
from orchestra.errors import EmbeddingModelMismatchError, NoMatchingRouteError
from orchestra.models.route import RouteDefinition

from tests.conftest import FakeCompletionModel, FakeEmbedder, VOCABULARY

CODING = RouteDefinition(
    name="coding",
    description="Programming help with rust code",
    examples=("fix this bug", "explain a trait", "why does my function not compile"),
)
MATH = RouteDefinition(
    name="math",
    description="Arithmetic with numbers",
    examples=("add 2 plus 2", "multiply numbers", "divide the sum"),
)


class TestClassifierRouter:
    def test_label_in_reply(self):
        router = ClassifierRouter(FakeCompletionModel(["maths"]), ["rust", "maths"])
        assert router.route("What is 2 + 2?") == "maths"

    def test_case_insensitive_substring(self):
        router = ClassifierRouter(FakeCompletionModel(["The category is: RUST."]), ["rust", "maths"])
        assert router.route("How do lifetimes work?") == "rust"

    def test_declared_order_wins_when_both_appear(self):
        router = ClassifierRouter(FakeCompletionModel(["maths or rust"]), ["rust", "maths"])
        assert router.route("?") == "rust"

    def test_banana_has_no_route(self):
        router = ClassifierRouter(FakeCompletionModel(["banana"]), ["rust", "maths"])
        with pytest.raises(NoMatchingRouteError) as excinfo:
            router.route("What fruit is yellow?")
        assert excinfo.value.reply == "banana"
        assert excinfo.value.query == "What fruit is yellow?"

    def test_request_is_constrained(self):
        model = FakeCompletionModel(["rust"])
        ClassifierRouter(model, ["rust", "maths"]).route("borrowing")
        request = model.requests[0]
        assert "rust, maths" in request.preamble
        assert request.messages[0].text == "borrowing"
        assert request.temperature == 0
        assert request.tools == []

    def test_custom_preamble(self):
        model = FakeCompletionModel(["rust"])
        ClassifierRouter(model, ["rust"], preamble="Pick one.").route("q")
        assert model.requests[0].preamble == "Pick one."

    def test_needs_labels(self):
        with pytest.raises(ValueError):
            ClassifierRouter(FakeCompletionModel(), [])


class TestSemanticRouter:
    def test_query_closer_to_math(self, embedder):
        router = SemanticRouter.build(embedder, [CODING, MATH])
        assert router.route("please add these numbers") == "math"

    def test_query_closer_to_coding(self, embedder):
        router = SemanticRouter.build(embedder, [CODING, MATH])
        assert router.route("my rust code has a bug") == "coding"

    def test_build_stamps_embeddings(self, embedder):
        router = SemanticRouter.build(embedder, [CODING, MATH])
        assert all(r.embedding is not None for r in router.routes)
        assert all(r.embedding_model == "fake-embedder" for r in router.routes)
        # Originals are frozen and left alone
        assert CODING.embedding is None

    def test_deterministic(self, embedder):
        router = SemanticRouter.build(embedder, [CODING, MATH])
        assert {router.route("divide the numbers") for _ in range(5)} == {"math"}

    def test_tie_goes_to_first_seen(self, embedder):
        first = RouteDefinition(name="first", description="arithmetic")
        second = RouteDefinition(name="second", description="arithmetic")
        assert SemanticRouter.build(embedder, [first, second]).route("arithmetic") == "first"
        assert SemanticRouter.build(embedder, [second, first]).route("arithmetic") == "second"

    def test_unrelated_query_still_routes_without_threshold(self, embedder):
        router = SemanticRouter.build(embedder, [CODING, MATH])
        assert router.route("what is the weather") in {"coding", "math"}

    def test_threshold_rejects_weak_match(self, embedder):
        router = SemanticRouter.build(embedder, [CODING, MATH], threshold=0.5)
        with pytest.raises(NoMatchingRouteError):
            router.route("what is the weather")

    def test_scores_are_ranked(self, embedder):
        router = SemanticRouter.build(embedder, [CODING, MATH])
        scores = router.scores("multiply numbers")
        assert [name for name, _ in scores] == ["math", "coding"]
        assert scores[0][1] > scores[1][1]

    def test_model_mismatch_rejected(self, embedder):
        routes = [r for r in SemanticRouter.build(embedder, [CODING, MATH]).routes]
        other = FakeEmbedder(VOCABULARY, model_name="other-embedder")
        with pytest.raises(EmbeddingModelMismatchError):
            SemanticRouter(other, routes)

    def test_unembedded_route_rejected(self, embedder):
        with pytest.raises(ValueError):
            SemanticRouter(embedder, [CODING])
