# Copyright (c) 2025 Kenneth Stott
#
# This source code is licensed under the Business Source License 1.1
# found in the LICENSE file in the root directory of this source tree.
#
# NOTICE: Use of this software for training artificial intelligence or
# machine learning models is strictly prohibited without explicit written
# permission from the copyright holder.

"""Built-in resolvers for kernel, operating system, networking and processors."""

import logging
import os
import platform
import socket
from typing import Optional

from hostfacts.facts import Resolver

logger = logging.getLogger(__name__)

# ID / ID_LIKE values from os-release mapped to an OS family
_OS_FAMILIES = {
    "debian": "Debian",
    "ubuntu": "Debian",
    "rhel": "RedHat",
    "fedora": "RedHat",
    "centos": "RedHat",
    "rocky": "RedHat",
    "almalinux": "RedHat",
    "amzn": "RedHat",
    "suse": "Suse",
    "opensuse": "Suse",
    "sles": "Suse",
    "arch": "Archlinux",
    "alpine": "Alpine",
    "gentoo": "Gentoo",
}


def _kernel_release() -> Optional[str]:
    return platform.release() or None


def kernel_resolver() -> Resolver:
    resolver = Resolver("kernel", names=["kernel", "kernelrelease", "kernelversion", "kernelmajversion"])

    @resolver.resolution(fact="kernel")
    def kernel(facts, name):
        return platform.system() or None

    @resolver.resolution(fact="kernelrelease")
    def kernelrelease(facts, name):
        return _kernel_release()

    @resolver.resolution(fact="kernelversion")
    def kernelversion(facts, name):
        release = _kernel_release()
        return release.split("-")[0] if release else None

    @resolver.resolution(fact="kernelmajversion")
    def kernelmajversion(facts, name):
        release = _kernel_release()
        if not release:
            return None
        return ".".join(release.split("-")[0].split(".")[:2])

    return resolver


def _os_release() -> dict[str, str]:
    """Read /etc/os-release style data (empty off Linux or when unavailable)."""
    try:
        return platform.freedesktop_os_release()
    except OSError as e:
        logger.debug(f"os-release data unavailable: {e}")
        return {}


def operating_system_resolver() -> Resolver:
    """The structured ``os`` fact plus architecture facts."""
    resolver = Resolver("operating system", names=["os", "architecture", "hardwaremodel"])

    @resolver.resolution(fact="os")
    def operating_system(facts, name):
        system = platform.system()
        info = _os_release() if system == "Linux" else {}

        family = system
        for candidate in [info.get("ID", "")] + info.get("ID_LIKE", "").split():
            if candidate in _OS_FAMILIES:
                family = _OS_FAMILIES[candidate]
                break

        full = info.get("VERSION_ID") or platform.release()
        parts = full.split(".")
        release = {"full": full, "major": parts[0]}
        if len(parts) > 1:
            release["minor"] = parts[1]

        return {
            "name": info.get("NAME", system).split(" ")[0] or system,
            "family": family,
            "release": release,
        }

    @resolver.resolution(fact="architecture")
    def architecture(facts, name):
        return platform.machine() or None

    @resolver.resolution(fact="hardwaremodel")
    def hardwaremodel(facts, name):
        return platform.machine() or None

    return resolver


def networking_resolver() -> Resolver:
    resolver = Resolver("networking", names=["hostname", "fqdn", "domain"])

    @resolver.resolution(fact="hostname")
    def hostname(facts, name):
        return socket.gethostname().split(".")[0] or None

    @resolver.resolution(fact="fqdn")
    def fqdn(facts, name):
        return socket.getfqdn() or None

    @resolver.resolution(fact="domain")
    def domain(facts, name):
        _, _, suffix = socket.getfqdn().partition(".")
        return suffix or None

    return resolver


def processors_resolver() -> Resolver:
    resolver = Resolver("processors", names=["processorcount"])

    @resolver.resolution()
    def processorcount(facts, name):
        return os.cpu_count()

    return resolver
