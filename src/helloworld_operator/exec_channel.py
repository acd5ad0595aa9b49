"""Remote command execution inside running pods."""

import logging
import threading

from kubernetes.stream import stream

from .templates import create_inject_command

logger = logging.getLogger(__name__)


class ExecListener:
    """Receives lifecycle signals of an exec session. Default implementation logs them."""

    def on_open(self, pod_name):
        logger.info(f"Exec session opened in pod {pod_name}")

    def on_failure(self, pod_name, error):
        logger.error(f"Exec session in pod {pod_name} failed: {error}")

    def on_close(self, pod_name, code):
        logger.info(f"Exec session in pod {pod_name} closed (exit code {code})")


class ExecChannel:
    """Runs the payload injection command in a pod without waiting for it."""

    def __init__(self, cluster, listener=None, update_timeout=1):
        self.cluster = cluster
        self.listener = listener or ExecListener()
        self.update_timeout = update_timeout

    def inject(self, pod_name, namespace, data):
        """Start writing ``data`` into the pod's data file on a background thread.

        Returns the started thread; callers are not expected to join it.
        """
        command = create_inject_command(data)
        thread = threading.Thread(
            target=self._run,
            args=(pod_name, namespace, command),
            name=f"exec-{pod_name}",
            daemon=True,
        )
        thread.start()
        return thread

    def _run(self, pod_name, namespace, command):
        try:
            resp = stream(
                self.cluster.core.connect_get_namespaced_pod_exec,
                pod_name,
                namespace,
                command=command,
                stdin=True,
                stdout=True,
                stderr=True,
                tty=True,
                _preload_content=False,
            )
        except Exception as e:
            self.listener.on_failure(pod_name, e)
            return

        self.listener.on_open(pod_name)
        try:
            while resp.is_open():
                resp.update(timeout=self.update_timeout)
                if resp.peek_stdout():
                    logger.debug(f"[{pod_name}] stdout: {resp.read_stdout()}")
                if resp.peek_stderr():
                    logger.debug(f"[{pod_name}] stderr: {resp.read_stderr()}")
        except Exception as e:
            self.listener.on_failure(pod_name, e)
        finally:
            resp.close()

        self.listener.on_close(pod_name, _exit_code(resp))


def _exit_code(resp):
    """Exit code reported on the error channel, None when it is not readable."""
    try:
        return resp.returncode
    except (TypeError, KeyError, ValueError):
        return None
