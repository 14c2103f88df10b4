# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""Built-in resolvers for the running process: interpreter, version, environment."""

import os
import platform
import sys

from hostfacts.facts import Resolver

ENV_FACT_PREFIX = "env_"


def python_resolver() -> Resolver:
    resolver = Resolver("python", names=["python"])

    @resolver.resolution()
    def python(facts, name):
        return {
            "version": platform.python_version(),
            "implementation": platform.python_implementation(),
            "executable": sys.executable or None,
        }

    return resolver


def hostfacts_resolver() -> Resolver:
    resolver = Resolver("hostfacts", names=["hostfactsversion"])

    @resolver.resolution()
    def hostfactsversion(facts, name):
        from hostfacts import __version__
        return __version__

    return resolver


def path_resolver() -> Resolver:
    resolver = Resolver("path", names=["path"])

    @resolver.resolution()
    def path(facts, name):
        return os.environ.get("PATH")

    return resolver


def environment_resolver() -> Resolver:
    """Dynamic ``env_<variable>`` facts exposing environment variables.

    Variable names are matched case-insensitively, so ``env_home`` reads HOME.
    """
    resolver = Resolver("environment", patterns=[ENV_FACT_PREFIX + r"[a-z0-9_]+"])

    @resolver.resolution()
    def variable(facts, name):
        wanted = name[len(ENV_FACT_PREFIX):].upper()
        for key, raw in os.environ.items():
            if key.upper() == wanted:
                return raw
        return None

    return resolver
