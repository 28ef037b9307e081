"""Expose an environment's ledger configuration as step outputs.

Variables become ``var_<NAME>`` outputs. Secrets are decrypted with the
step's private key and become ``secret_<NAME>`` outputs; each plaintext is
masked before it is written anywhere.
"""

from __future__ import annotations

from record_release.channels.step_io import StepOutputs
from record_release.clients.http import HttpClient
from record_release.clients.ledger import LedgerTarget, fetch_environment_config
from record_release.core.result import Err, Ok, Result
from record_release.output.console import ConsoleProtocol
from record_release.release.errors import ReleaseError
from record_release.services.secrets import decrypt_secret, load_private_key

__all__ = ["deliver_environment_config"]


def deliver_environment_config(
    http: HttpClient,
    console: ConsoleProtocol,
    outputs: StepOutputs,
    *,
    target: LedgerTarget,
    environment: str,
    secret_key: str | None,
) -> Result[None, ReleaseError]:
    """Fetch config for environment and publish it as outputs.

    Secrets are all decrypted before the first one is exposed, so a bad
    secret fails the step without leaking the others.
    """
    console.info(f"Loading configuration for {environment}...")
    fetched = fetch_environment_config(http, target, environment=environment)
    if isinstance(fetched, Err):
        return fetched
    config = fetched.value

    for name, value in sorted(config.variables.items()):
        result = outputs.set_output(f"var_{name}", value)
        if isinstance(result, Err):
            return result

    if not config.secrets:
        console.info(f"Loaded {len(config.variables)} variable(s)")
        return Ok(None)

    if not secret_key:
        console.warning(
            f"{len(config.secrets)} secret(s) configured but no secret-key provided; secrets skipped"
        )
        console.info(f"Loaded {len(config.variables)} variable(s)")
        return Ok(None)

    key = load_private_key(secret_key)
    if isinstance(key, Err):
        return key

    plaintexts: dict[str, str] = {}
    for name, encrypted in sorted(config.secrets.items()):
        decrypted = decrypt_secret(encrypted, key.value)
        if isinstance(decrypted, Err):
            return Err(
                ReleaseError(
                    kind="secret_invalid",
                    message=f"failed to decrypt secret {name}: {decrypted.error.message}",
                )
            )
        plaintexts[name] = decrypted.value

    for name, value in plaintexts.items():
        if value:
            outputs.mask(value)
        result = outputs.set_output(f"secret_{name}", value)
        if isinstance(result, Err):
            return result

    console.info(f"Loaded {len(config.variables)} variable(s) and {len(plaintexts)} secret(s)")
    return Ok(None)
