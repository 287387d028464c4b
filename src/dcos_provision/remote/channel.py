# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/dcos_provision/remote/channel.py
from __future__ import annotations

import codecs
import logging
import shlex
import threading
import time
from pathlib import Path
from typing import Callable, Optional, Protocol

import paramiko

log = logging.getLogger("dcos_provision")

# (stream, chunk) where stream is "stdout" or "stderr"
OutputHandler = Callable[[str, str], None]


class RemoteChannel(Protocol):
    def sudo(self, command: str, on_output: Optional[OutputHandler] = None) -> int: ...


class SshChannel:
    """
    Runs commands as root on one machine over SSH.

    The connection is opened on first use, so building a topology never
    touches the network. Commands have no client-side timeout; a call
    blocks until the remote side exits.
    """

    def __init__(
        self,
        address: str,
        *,
        username: str,
        port: int = 22,
        pkey_path: Optional[Path] = None,
        password: Optional[str] = None,
        connect_timeout: float = 20.0,
    ):
        self.address = address
        self.username = username
        self.port = port
        self.pkey_path = pkey_path
        self.password = password
        self.connect_timeout = connect_timeout
        self._client: Optional[paramiko.SSHClient] = None
        self._lock = threading.Lock()

    def _load_pkey(self):
        if not self.pkey_path:
            return None
        key_path = str(self.pkey_path)
        for key_cls in (paramiko.Ed25519Key, paramiko.RSAKey, paramiko.ECDSAKey):
            try:
                return key_cls.from_private_key_file(key_path)
            except paramiko.SSHException:
                continue
        raise paramiko.SSHException(f"Unsupported or passphrase-protected private key: {key_path}")

    def _connect(self) -> paramiko.SSHClient:
        with self._lock:
            if self._client is not None:
                return self._client

            client = paramiko.SSHClient()
            client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

            pkey = self._load_pkey()
            log.debug("[ssh] connecting to %s@%s:%d", self.username, self.address, self.port)
            client.connect(
                hostname=self.address,
                port=self.port,
                username=self.username,
                password=self.password if not pkey else None,
                pkey=pkey,
                timeout=self.connect_timeout,
                allow_agent=pkey is None,
                look_for_keys=pkey is None,
            )
            self._client = client
            return client

    def sudo(self, command: str, on_output: Optional[OutputHandler] = None) -> int:
        client = self._connect()
        final_cmd = f"sudo -H bash -c {shlex.quote(command)}"

        _stdin, stdout, stderr = client.exec_command(final_cmd)
        channel = stdout.channel

        # a multi-byte character may straddle two reads
        decoders = {
            "stdout": codecs.getincrementaldecoder("utf-8")("replace"),
            "stderr": codecs.getincrementaldecoder("utf-8")("replace"),
        }

        def emit(stream: str, data: bytes, final: bool = False) -> None:
            text = decoders[stream].decode(data, final=final)
            if on_output and text:
                on_output(stream, text)

        while not channel.exit_status_ready():
            if channel.recv_ready():
                emit("stdout", channel.recv(4096))
            if channel.recv_stderr_ready():
                emit("stderr", channel.recv_stderr(4096))
            time.sleep(0.1)

        rc = channel.recv_exit_status()

        # drain whatever arrived after the exit status
        emit("stdout", stdout.read(), final=True)
        emit("stderr", stderr.read(), final=True)
        return rc

    def close(self) -> None:
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None
