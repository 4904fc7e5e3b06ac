from __future__ import annotations  # Model routing configuration

import logging
import os
import platform
import re
import subprocess
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .settings import Settings


logger = logging.getLogger(__name__)

LOOPBACK_HOSTS = ("127.0.0.1", "localhost", "::1")
_GPU_PATTERN = re.compile(r"AMD|Radeon|NVIDIA|Intel", re.IGNORECASE)


class LlmRoute(BaseModel):  # LLM endpoint configuration
    model_config = ConfigDict(frozen=True)

    name: str
    base_url: str
    endpoint: str = ""
    model: str
    timeout_s: float = Field(default=120.0, ge=0.1)
    api_key: Optional[str] = None
    extra_headers: Dict[str, str] = Field(default_factory=dict)

    @property
    def url(self) -> str:
        return f"{self.base_url.rstrip('/')}{self.endpoint}" if self.endpoint else self.base_url


class InvocationPolicy(BaseModel):  # Local/hosted routing decision injected into the invoker
    model_config = ConfigDict(frozen=True)

    local: LlmRoute
    hosted: Optional[LlmRoute] = None
    prefer_hosted: bool = False

    @property
    def hosted_configured(self) -> bool:
        return bool(self.hosted and self.hosted.base_url and self.hosted.api_key)


def is_loopback(base_url: str) -> bool:  # True when the URL points at this machine
    host = re.sub(r"^[a-z]+://", "", base_url.strip().lower())
    host = host.split("/", 1)[0]
    if host.startswith("["):
        host = host[1:].split("]", 1)[0]
    else:
        host = host.rsplit(":", 1)[0] if host.count(":") == 1 else host
    return host in LOOPBACK_HOSTS


def probe_local_accelerator() -> bool:
    """Best-effort check for a GPU on this machine.

    Any failure while probing is treated as "no accelerator".
    """

    system = platform.system()
    try:
        if system == "Darwin":
            out = subprocess.run(
                ["system_profiler", "SPDisplaysDataType", "-detailLevel", "mini"],
                capture_output=True,
                text=True,
                timeout=10,
            ).stdout
            return bool(_GPU_PATTERN.search(out))
        if system == "Linux":
            if os.path.exists("/proc/driver/nvidia"):
                return True
            out = subprocess.run(["lspci", "-nnk"], capture_output=True, text=True, timeout=10).stdout
            vga = "\n".join(line for line in out.splitlines() if "vga" in line.lower())
            return bool(re.search(r"AMD|Radeon|NVIDIA", vga, re.IGNORECASE))
        if system == "Windows":
            out = subprocess.run(
                ["wmic", "path", "win32_VideoController", "get", "name"],
                capture_output=True,
                text=True,
                timeout=10,
            ).stdout
            return bool(_GPU_PATTERN.search(out))
    except (OSError, subprocess.SubprocessError) as exc:
        logger.info("Accelerator probe failed: %s", exc)
        return False
    return False


def build_policy(cfg: Settings, *, accelerator_available: bool) -> InvocationPolicy:  # Resolve routing once at startup
    local = LlmRoute(
        name="local",
        base_url=cfg.OLLAMA_HOST,
        endpoint=cfg.OLLAMA_ENDPOINT,
        model=cfg.MODEL_NAME,
        timeout_s=cfg.MODEL_TIMEOUT_S,
    )
    hosted: Optional[LlmRoute] = None
    if cfg.HOSTED_AI_ENDPOINT:
        hosted = LlmRoute(
            name="hosted",
            base_url=cfg.HOSTED_AI_ENDPOINT,
            model=cfg.MODEL_NAME,
            timeout_s=cfg.MODEL_TIMEOUT_S,
            api_key=cfg.HOSTED_API_KEY or None,
        )
    policy = InvocationPolicy(local=local, hosted=hosted)
    prefer_hosted = cfg.FORCE_HOSTED
    if is_loopback(cfg.OLLAMA_HOST) and not accelerator_available:
        logger.warning("Local model host %s has no detected GPU", cfg.OLLAMA_HOST)
        if policy.hosted_configured:
            logger.warning("Hosted fallback configured; routing model calls to it")
            prefer_hosted = True
        else:
            logger.warning("No hosted fallback configured; model calls will run on CPU")
    if prefer_hosted and not policy.hosted_configured:
        logger.warning("Hosted routing requested but no hosted credentials are configured")
        prefer_hosted = False
    return policy.model_copy(update={"prefer_hosted": prefer_hosted})


__all__ = [
    "LlmRoute",
    "InvocationPolicy",
    "build_policy",
    "is_loopback",
    "probe_local_accelerator",
]
