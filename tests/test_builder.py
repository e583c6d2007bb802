import asyncio

import pytest

from service_builder.builder import Builder, getter_name, setter_name
from service_builder.errors import CircularDependencyError
from service_builder.factory import factory
from service_builder.registry import inject


def make_breakfast(meat, egg, juice):
    return f"{meat} {egg} eggs {juice} juice"


@pytest.fixture
def builder():
    return factory({"breakfast": make_breakfast}).construct()


@pytest.fixture
def meals():
    return factory(
        {
            "breakfast": make_breakfast,
            "solids": lambda meat, egg: f"{meat} {egg}",
        }
    )


def test_member_naming():
    assert setter_name("meat") == "with_meat"
    assert getter_name("breakfast") == "get_breakfast"


def test_root_builder_exposes_setters_and_services(builder):
    assert isinstance(builder, Builder)
    assert set(builder) == {
        "with_meat",
        "with_egg",
        "with_juice",
        "get_breakfast",
        "breakfast",
    }


def test_setters_are_callable(builder):
    assert callable(builder.with_meat)
    assert builder["with_meat"] is builder.with_meat


def test_setter_returns_a_builder_without_that_setter(builder):
    assert set(builder.with_meat().keys()) == {
        "with_egg",
        "with_juice",
        "get_breakfast",
        "breakfast",
    }


def test_supplying_everything_leaves_only_services(builder):
    assert set(builder.with_meat().with_egg().with_juice().keys()) == {
        "get_breakfast",
        "breakfast",
    }


def test_service_is_resolved_from_supplied_values(builder):
    done = builder.with_meat("bacon").with_egg("scrambled").with_juice("orange")

    assert done.get_breakfast() == "bacon scrambled eggs orange juice"
    assert done.breakfast == "bacon scrambled eggs orange juice"
    assert done["breakfast"] == "bacon scrambled eggs orange juice"


def test_setter_does_not_change_its_builder(builder):
    builder.with_meat("bacon")

    assert "with_meat" in builder
    assert len(builder) == 5


def test_service_without_dependencies_has_no_setters():
    builder = factory({"foo": lambda: "bar"}).construct()

    assert builder.get_foo() == "bar"
    assert set(builder) == {"get_foo", "foo"}


def test_latest_supplied_value_wins(builder):
    builder.with_meat("ham")
    latest = builder.with_meat("bacon")

    assert "with_meat" not in latest
    assert latest.with_egg("fried").with_juice("apple").get_breakfast() == (
        "bacon fried eggs apple juice"
    )


def test_sibling_builders_share_their_context(builder):
    with_meat = builder.with_meat("ham")
    with_egg = builder.with_egg("poached")

    assert with_meat.with_juice("grape").breakfast == "ham poached eggs grape juice"
    assert "with_meat" not in with_egg.with_juice("grape")


def test_getter_is_memoised():
    calls = []
    builder = factory(
        {"counted": lambda meat: calls.append(meat) or len(calls)}
    ).construct({"meat": "ham"})

    assert builder.get_counted() == 1
    assert builder.counted == 1
    assert calls == ["ham"]


def test_unknown_member_raises_attribute_error(builder):
    with pytest.raises(AttributeError, match="no attribute 'with_bread'"):
        builder.with_bread("rye")

    with pytest.raises(KeyError):
        builder["with_bread"]


def test_multiple_services_share_setters(meals):
    builder = meals.construct().with_meat()
    assert set(builder) == {
        "with_egg",
        "with_juice",
        "get_breakfast",
        "get_solids",
        "breakfast",
        "solids",
    }

    builder = builder.with_egg()
    assert set(builder) == {
        "with_juice",
        "get_breakfast",
        "get_solids",
        "breakfast",
        "solids",
    }

    builder = builder.with_juice()
    assert set(builder) == {"get_breakfast", "get_solids", "breakfast", "solids"}


def test_initial_context_removes_setters(meals):
    builder = meals.construct({"meat": "ham", "egg": "scrambled", "juice": "orange"})

    assert set(builder) == {"get_breakfast", "get_solids", "breakfast", "solids"}
    assert builder.get_breakfast() == "ham scrambled eggs orange juice"
    assert builder.resolve(lambda breakfast: breakfast) == (
        "ham scrambled eggs orange juice"
    )


def test_list_and_injected_definitions_behave_alike():
    @inject("meat", "egg")
    def solids(m, e):
        return f"{m} {e}"

    builder = factory(
        {
            "breakfast": ["meat", "egg", "juice", lambda m, e, j: f"{m} {e} eggs {j} juice"],
            "solids": solids,
        }
    ).construct()

    assert set(builder.with_meat()) == {
        "with_egg",
        "with_juice",
        "get_breakfast",
        "get_solids",
        "breakfast",
        "solids",
    }
    assert builder.with_meat("ham").with_egg("boiled").solids == "ham boiled"


def test_dependencies_are_loaded_lazily():
    builder = factory(
        {
            "meal": lambda meat, veggie: f"{meat} and {veggie}",
            "meat": lambda meat_style, meat_cut: f"{meat_style} {meat_cut}",
            "veggie": lambda veggie_style, vegetable: f"{veggie_style} {vegetable}",
        }
    ).construct()

    meal = (
        builder.with_veggie_style("steamed")
        .with_vegetable("beans")
        .with_meat_cut("steak")
        .with_meat_style("grilled")
        .get_meal()
    )

    assert meal == "grilled steak and steamed beans"


@pytest.mark.parametrize("meat_is_async", [True, False])
def test_async_dependencies(meat_is_async):
    async def make_meat(meat_style, meat_cut):
        return f"{meat_style} {meat_cut}"

    async def make_veggie(veggie_style, vegetable):
        return f"{veggie_style} {vegetable}"

    async def scenario():
        builder = factory(
            {
                "meal": lambda meat, veggie: f"{meat} and {veggie}",
                "meat": make_meat
                if meat_is_async
                else (lambda meat_style, meat_cut: f"{meat_style} {meat_cut}"),
                "veggie": make_veggie,
            }
        ).construct()

        return await (
            builder.with_veggie_style("steamed")
            .with_vegetable("beans")
            .with_meat_cut("steak")
            .with_meat_style("grilled")
            .get_meal()
        )

    assert asyncio.run(scenario()) == "grilled steak and steamed beans"


def test_cycle_is_reported_by_getter():
    builder = factory({"a": lambda b: b, "b": lambda c: c, "c": lambda a: a}).construct()

    with pytest.raises(CircularDependencyError, match="Circular dependency error with a at a => c => b"):
        builder.get_a()


class TestAdHocResolver:
    def test_reserved_key_is_not_enumerated(self, builder):
        assert "$" not in set(builder)
        assert callable(builder["$"])

    def test_reserved_dependency_is_the_resolver(self):
        builder = factory(
            {
                "foo": ["$", lambda resolve: resolve(lambda bar: bar)],
                "bar": lambda: "bar",
            }
        ).construct()

        assert set(builder) == {"get_foo", "foo", "get_bar", "bar"}
        assert builder.get_foo() == "bar"

    def test_resolver_sees_services_defined_after_construction(self):
        services = factory({"foo": inject("$")(lambda resolve: resolve(["bar", lambda bar: bar]))})
        builder = services.construct()

        services.define({"bar": "bar"})

        assert builder.foo == "bar"

    def test_resolves_from_initial_context(self):
        builder = factory().construct({"meat": "ham", "egg": "scrambled", "juice": "orange"})

        assert builder["$"](lambda meat: meat) == "ham"
        assert builder.resolve(lambda meat, egg, juice: meat + egg + juice) == (
            "hamscrambledorange"
        )

    def test_resolves_async_values(self):
        async def ham():
            return "ham"

        async def scenario():
            builder = factory().construct({"meat": ham()})
            return await builder.resolve(lambda meat: meat)

        assert asyncio.run(scenario()) == "ham"

    def test_async_failure_is_propagated(self):
        async def no_ham():
            raise ValueError("ham")

        async def scenario():
            builder = factory().construct({"meat": no_ham()})
            await builder.resolve(lambda meat: meat)

        with pytest.raises(ValueError, match="ham"):
            asyncio.run(scenario())


class TestAsyncOutsideEventLoop:
    def test_async_provider_result_can_be_run(self):
        async def make_meat(cut):
            return f"grilled {cut}"

        builder = factory({"meat": make_meat}).construct({"cut": "steak"})

        assert asyncio.run(builder.get_meat()) == "grilled steak"
        assert asyncio.run(builder.get_meat()) == "grilled steak"

    def test_supplied_coroutine_is_settled_once(self):
        calls = []

        async def ham():
            calls.append("ham")
            return "ham"

        builder = factory(
            {
                "meal": lambda meat, veggie: f"{meat} and {veggie}",
                "sandwich": lambda meat: f"{meat} sandwich",
            }
        ).construct()
        done = builder.with_meat(ham()).with_veggie("beans")

        meal = done.get_meal()
        sandwich = done.get_sandwich()

        async def serve():
            return await meal, await sandwich

        assert asyncio.run(serve()) == ("ham and beans", "ham sandwich")
        assert calls == ["ham"]

    def test_failure_surfaces_when_awaited(self):
        async def no_ham():
            raise ValueError("ham")

        result = factory().construct({"meat": no_ham()}).resolve(lambda meat: meat)

        with pytest.raises(ValueError, match="ham"):
            asyncio.run(result)


def test_pending_service_is_loading_until_settled():
    async def scenario():
        services = factory(
            {"meat": ["cut", lambda cut: cut], "meal": lambda meat: f"{meat} dinner"}
        )
        cut = asyncio.get_running_loop().create_future()
        builder = services.construct({"cut": cut})

        meat = builder.get_meat()
        with pytest.raises(CircularDependencyError, match="with meat at meat => meal"):
            builder.get_meal()

        cut.set_result("steak")
        assert await meat == "steak"
        return services.construct({"cut": "rump"}).get_meal()

    assert asyncio.run(scenario()) == "rump dinner"
