import asyncio
import logging
import typing

from kubernetes_asyncio import client, config

from .config import config as app_config

logger = logging.getLogger(__name__)

# Both watch loops may ask for a client at startup; load the config once.
_CONFIG_LOCK = asyncio.Lock()
_CONFIG_LOADED = False


async def ensure_k8s_config() -> bool:
    """
    Loads the in-cluster config, or the local kubeconfig (using
    KUBECONFIG_CONTEXT when set) when not running as a pod.

    Returns False when neither is available.
    """
    global _CONFIG_LOADED

    if _CONFIG_LOADED:
        return True

    async with _CONFIG_LOCK:
        if _CONFIG_LOADED:
            return True

        try:
            logger.debug("Trying in-cluster Kubernetes config")
            config.load_incluster_config()
            logger.info("Using in-cluster Kubernetes configuration.")
            _CONFIG_LOADED = True
            return True
        except config.ConfigException:
            logger.debug("Not running in a cluster, falling back to kubeconfig.")
        except Exception as e:
            logger.warning(f"Unexpected error loading in-cluster config: {e}")

        try:
            logger.debug("Trying kubeconfig (context=%s)", app_config.KUBECONFIG_CONTEXT or "current")
            await config.load_kube_config(context=app_config.KUBECONFIG_CONTEXT)
            logger.info("Using Kubernetes configuration from kubeconfig.")
            _CONFIG_LOADED = True
            return True
        except config.ConfigException:
            logger.warning("Could not find kubeconfig file.")
        except Exception as e:
            logger.warning(f"Unexpected error loading kubeconfig: {e}")

    logger.warning("No Kubernetes configuration available; cluster calls will fail.")
    return False


async def get_core_v1_api() -> typing.Optional[client.CoreV1Api]:
    """Returns a CoreV1Api for nodes, pods, evictions and events, or None without config."""
    if await ensure_k8s_config():
        return client.CoreV1Api()
    return None


async def get_apps_v1_api() -> typing.Optional[client.AppsV1Api]:
    """Returns an AppsV1Api for listing daemon-sets, or None without config."""
    if await ensure_k8s_config():
        return client.AppsV1Api()
    return None
