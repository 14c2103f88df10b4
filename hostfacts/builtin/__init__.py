# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""Built-in platform resolvers.

Built-in resolvers are registered before custom and external facts, so a
custom resolution must carry a higher weight to override a built-in one.
"""

from hostfacts.facts import Collection, Resolver

from .runtime import (
    ENV_FACT_PREFIX,
    environment_resolver,
    hostfacts_resolver,
    path_resolver,
    python_resolver,
)
from .system import (
    kernel_resolver,
    networking_resolver,
    operating_system_resolver,
    processors_resolver,
)


def builtin_resolvers() -> list[Resolver]:
    """Fresh instances of every built-in resolver, in registration order."""
    return [
        kernel_resolver(),
        operating_system_resolver(),
        networking_resolver(),
        processors_resolver(),
        python_resolver(),
        hostfacts_resolver(),
        path_resolver(),
        environment_resolver(),
    ]


def register_builtin_resolvers(collection: Collection) -> None:
    for resolver in builtin_resolvers():
        collection.add_resolver(resolver)


__all__ = [
    "ENV_FACT_PREFIX",
    "builtin_resolvers",
    "register_builtin_resolvers",
    "environment_resolver",
    "hostfacts_resolver",
    "kernel_resolver",
    "networking_resolver",
    "operating_system_resolver",
    "path_resolver",
    "processors_resolver",
    "python_resolver",
]
