# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""Tests for the fact collection: lazy resolution, caching, cycles, overrides."""

import logging
from unittest.mock import MagicMock

from hostfacts.core.values import Value
from hostfacts.facts import (
    Collection,
    Confine,
    FactSource,
    FactState,
    Resolution,
    Resolver,
)


class TestCaching:
    """Tests for resolve-once semantics."""

    def test_producer_invoked_once(self, collection):
        """Test repeated gets reuse the cached value."""
        producer = MagicMock(return_value="Linux")
        resolver = Resolver("kernel", names=["kernel"])
        resolver.add_resolution(Resolution(producer))
        collection.add_resolver(resolver)

        assert collection.get("kernel") == Value.string("Linux")
        assert collection.get("kernel") == Value.string("Linux")
        assert producer.call_count == 1

    def test_absent_is_cached(self, collection):
        """Test a fact resolving to nothing is not retried."""
        producer = MagicMock(return_value=None)
        resolver = Resolver("empty", names=["empty"])
        resolver.add_resolution(Resolution(producer))
        collection.add_resolver(resolver)

        assert collection.get("empty") is None
        assert collection.get("empty") is None
        assert producer.call_count == 1
        assert collection.fact("empty").state == FactState.ABSENT

    def test_unknown_fact_absent(self, collection):
        """Test a name nobody owns is absent, not an error."""
        assert collection.get("nonexistent") is None
        assert collection["nonexistent"] is None


class TestWeights:
    """Tests for weighted selection through the collection."""

    def test_heavier_resolution_wins(self, collection, constant_resolver):
        """Test weight 10 beats weight 0 for the same fact."""
        collection.add_resolver(constant_resolver("light", {"role": "a"}, weight=0))
        collection.add_resolver(constant_resolver("heavy", {"role": "b"}, weight=10))
        assert collection.get("role") == Value.string("b")
        assert collection.fact("role").resolver == "heavy"

    def test_heavier_registered_first(self, collection, constant_resolver):
        """Test a heavier resolver registered first still wins."""
        collection.add_resolver(constant_resolver("heavy", {"role": "b"}, weight=10))
        collection.add_resolver(constant_resolver("light", {"role": "a"}, weight=0))
        assert collection.get("role") == Value.string("b")
        assert collection.fact("role").resolver == "heavy"

    def test_tie_uses_registration_order(self, collection, constant_resolver):
        """Test equal weights go to the resolver registered first."""
        collection.add_resolver(constant_resolver("first", {"role": "a"}, weight=5))
        collection.add_resolver(constant_resolver("second", {"role": "b"}, weight=5))
        assert collection.get("role") == Value.string("a")

    def test_confine_on_absent_fact(self, collection):
        """Test a confine on a fact that is absent disqualifies the candidate."""
        resolver = Resolver("role", names=["role"])
        resolver.add_resolution(Resolution(
            lambda f, n: "confined",
            weight=100,
            confines=[Confine("does_not_exist", "x")],
        ))
        resolver.add_resolution(Resolution(lambda f, n: "fallback", weight=1))
        collection.add_resolver(resolver)
        assert collection.get("role") == Value.string("fallback")

    def test_confine_resolves_dependency(self, collection, constant_resolver):
        """Test confines request other facts lazily."""
        collection.add_resolver(constant_resolver("kernel", {"kernel": "Linux"}))
        resolver = Resolver("pkg", names=["package_manager"])
        resolver.add_resolution(Resolution(lambda f, n: "apt", confines=[Confine("kernel", "Linux")]))
        resolver.add_resolution(Resolution(lambda f, n: "brew", confines=[Confine("kernel", "Darwin")]))
        collection.add_resolver(resolver)
        assert collection.get("package_manager") == Value.string("apt")
        assert "kernel" in collection


class TestOverrides:
    """Tests for resolvers that override one fact of another resolver."""

    def _networking(self):
        networking = Resolver("networking", names=["hostname", "fqdn"])
        networking.resolution(fact="hostname")(lambda facts, name: "web01")
        networking.resolution(fact="fqdn")(lambda facts, name: "web01.localdomain")
        return networking

    def test_override_reads_sibling_fact(self, collection, caplog):
        """Test an override producer can request a fact its rival owns."""
        custom = Resolver("custom:fqdn", names=["fqdn"])
        custom.resolution(weight=10)(lambda facts, name: facts.get("hostname").data + ".example.com")
        collection.add_resolver(self._networking())
        collection.add_resolver(custom)

        with caplog.at_level(logging.ERROR, logger="hostfacts"):
            assert collection.get("fqdn") == Value.string("web01.example.com")
        assert collection.fact("fqdn").resolver == "custom:fqdn"
        assert collection.get("hostname") == Value.string("web01")
        assert "cycle detected" not in caplog.text

    def test_override_confined_on_sibling_fact(self, collection, caplog):
        """Test an override's confine can request a fact its rival owns."""
        kernel = Resolver("kernel", names=["kernel", "kernelrelease"])
        kernel.resolution(fact="kernel")(lambda facts, name: "Linux")
        kernel.resolution(fact="kernelrelease")(lambda facts, name: "6.1.0")
        custom = Resolver("custom:kernelrelease", names=["kernelrelease"])
        custom.add_resolution(Resolution(
            lambda facts, name: "6.1.0-custom",
            weight=10,
            confines=[Confine("kernel", "Linux")],
        ))
        collection.add_resolver(kernel)
        collection.add_resolver(custom)

        with caplog.at_level(logging.ERROR, logger="hostfacts"):
            assert collection.get("kernelrelease") == Value.string("6.1.0-custom")
        assert collection.fact("kernelrelease").state == FactState.RESOLVED
        assert "cycle detected" not in caplog.text

    def test_resolver_reading_own_fact_is_circular(self, collection):
        """Test a producer re-entering its own resolver is still a cycle."""
        resolver = Resolver("pair", names=["left", "right"])
        resolver.resolution(fact="left")(lambda facts, name: facts.get("right"))
        resolver.resolution(fact="right")(lambda facts, name: "r")
        collection.add_resolver(resolver)
        assert collection.get("left") is None
        assert collection.resolving == ()
        assert resolver.resolving is None


class TestCycles:
    """Tests for circular resolution detection."""

    def _mutual(self, collection):
        a = Resolver("a", names=["a"])
        a.add_resolution(Resolution(lambda facts, name: facts.get("b")))
        b = Resolver("b", names=["b"])
        b.add_resolution(Resolution(lambda facts, name: facts.get("a")))
        c = Resolver("c", names=["c"])
        c.add_resolution(Resolution(lambda facts, name: "independent"))
        for resolver in (a, b, c):
            collection.add_resolver(resolver)

    def test_mutual_dependency_absent(self, collection, caplog):
        """Test A <-> B leaves both absent, reports the cycle, and C still resolves."""
        self._mutual(collection)

        with caplog.at_level(logging.ERROR, logger="hostfacts"):
            assert collection.get("a") is None
        assert collection.fact("a").state == FactState.ABSENT
        assert collection.get("b") is None
        assert collection.fact("b").state == FactState.ABSENT
        assert collection.get("c") == Value.string("independent")
        assert 'cycle detected while requesting value of fact "a": a -> b -> a' in caplog.text

    def test_cycle_through_confine(self, collection):
        """Test cycles introduced by confines are caught too."""
        resolver = Resolver("self", names=["selfish"])
        resolver.add_resolution(Resolution(lambda f, n: 1, confines=[Confine("selfish", 1)]))
        collection.add_resolver(resolver)
        assert collection.get("selfish") is None
        assert collection.resolving == ()

    def test_events(self):
        """Test resolution events are emitted for the cycle."""
        events = []
        collection = Collection(environ={}, event_callback=lambda kind, data: events.append((kind, data)))
        self._mutual(collection)
        collection.get("a")
        failed = [data for kind, data in events if kind == "fact_failed"]
        assert [data["fact_name"] for data in failed] == ["b", "a"]
        assert failed[-1]["chain"] == ["a", "b", "a"]


class TestEnvironmentOverride:
    """Tests for FACTER_<name> overrides."""

    def test_override_beats_weight(self, constant_resolver):
        """Test the environment wins even over a heavy resolver."""
        collection = Collection(environ={"FACTER_role": "v"})
        collection.add_resolver(constant_resolver("heavy", {"role": "resolved"}, weight=1000))
        assert collection.get("role") == Value.string("v")
        assert collection.fact("role").source == FactSource.ENVIRONMENT

    def test_case_insensitive(self):
        """Test variable names are matched ignoring case."""
        collection = Collection(environ={"facter_KERNEL": "Plan9"})
        assert collection.get("kernel") == Value.string("Plan9")

    def test_os_environ(self, monkeypatch):
        """Test the process environment is read when no mapping is given."""
        monkeypatch.setenv("FACTER_datacenter", "ams1")
        assert Collection().get("datacenter") == Value.string("ams1")

    def test_custom_prefix(self):
        """Test the prefix is configurable."""
        collection = Collection(env_prefix="HOSTFACTS_", environ={"HOSTFACTS_role": "db"})
        assert collection.get("role") == Value.string("db")


class TestRegistry:
    """Tests for adding facts and resolvers."""

    def test_add_seeds_value(self, collection):
        """Test literal facts bypass resolvers; last write wins."""
        collection.add("role", "web")
        collection.add("role", {"tier": "db"})
        assert collection.get("role") == Value.of({"tier": "db"})
        assert collection.fact("role").source == FactSource.EXTERNAL

    def test_add_none_is_absent(self, collection):
        """Test seeding None records the fact as absent."""
        collection.add("nothing", None)
        assert collection.fact("nothing").state == FactState.ABSENT

    def test_duplicate_resolver_ignored(self, collection, constant_resolver):
        """Test registering the same resolver twice is a no-op."""
        resolver = constant_resolver("r", {"x": 1})
        collection.add_resolver(resolver)
        collection.add_resolver(resolver)
        assert collection.resolvers == [resolver]

    def test_exact_name_beats_pattern(self, collection):
        """Test pattern resolvers are only used when no exact owner exists."""
        pattern = Resolver("dynamic", patterns=[r"env_[a-z]+"])
        pattern.add_resolution(Resolution(lambda f, n: "pattern"))
        exact = Resolver("exact", names=["env_special"])
        exact.add_resolution(Resolution(lambda f, n: "exact"))
        collection.add_resolver(pattern)
        collection.add_resolver(exact)
        assert collection.get("env_special") == Value.string("exact")
        assert collection.get("env_other") == Value.string("pattern")

    def test_blocked(self):
        """Test blocked facts are never resolved."""
        producer = MagicMock(return_value="x")
        resolver = Resolver("r", names=["secret"])
        resolver.add_resolution(Resolution(producer))
        collection = Collection(environ={}, blocked=["secret"])
        collection.add_resolver(resolver)
        assert collection.get("secret") is None
        producer.assert_not_called()


class TestQuery:
    """Tests for dotted queries and bulk access."""

    def test_dotted_path(self, collection):
        """Test map keys and array indexes are walked."""
        collection.add("os", {"release": {"major": "22"}, "names": ["a", "b"]})
        assert collection.query("os.release.major") == Value.string("22")
        assert collection.query("os.names.1") == Value.string("b")
        assert collection.query("os.missing") is None
        assert collection.query("os.names.9") is None

    def test_walk_does_not_record_prefixes(self, collection):
        """Test walking a path leaves no records for the intermediate names."""
        collection.add("os", {"release": {"major": "22"}})
        assert collection.query("os.release.major") == Value.string("22")
        assert collection.names() == ["os"]
        assert collection.query("nothing.here") is None
        assert collection.names() == ["os"]

    def test_exact_name_wins(self, collection):
        """Test a fact literally named with dots wins over walking."""
        collection.add("os", {"release": "map"})
        collection.add("os.release", "literal")
        assert collection.query("os.release") == Value.string("literal")

    def test_resolve_all(self, collection, constant_resolver):
        """Test bulk resolution skips absent facts."""
        collection.add_resolver(constant_resolver("r", {"a": 1, "b": None}))
        collection.add("c", True)
        assert collection.resolve() == {"a": Value.integer(1), "c": Value.boolean(True)}
        assert collection.to_dict() == {"a": 1, "c": True}
        assert len(collection) == 2
        assert dict(collection) == {"a": Value.integer(1), "c": Value.boolean(True)}

    def test_names_include_environment(self):
        """Test override variables contribute names."""
        collection = Collection(environ={"FACTER_Role": "x", "PATH": "/bin"})
        assert collection.names() == ["role"]
