from jinja2 import Environment, FileSystemLoader, StrictUndefined
from pathlib import Path

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

POSTFLIGHT_INTERVAL_SECONDS = 5


class TemplateRenderer:
    def __init__(self, templates_dir: Path = TEMPLATES_DIR):
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=False,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def render(self, template_name: str, context: dict) -> str:
        tmpl = self.env.get_template(template_name)
        return tmpl.render(**context)


_renderer = TemplateRenderer()


def ip_detect_script(master_ip: str) -> str:
    """Prints this machine's address on the route towards the first master."""
    return _renderer.render("ip-detect.j2", {"master_ip": master_ip})


def postflight_script(timeout_seconds: int, interval_seconds: int = POSTFLIGHT_INTERVAL_SECONDS) -> str:
    """
    Health check loop with a countdown budget. The countdown is clamped at
    zero, so any positive budget ends even when it is not a multiple of the
    interval.
    """
    if timeout_seconds <= 0 or interval_seconds <= 0:
        raise ValueError(
            f"postflight budget and interval must be positive (got {timeout_seconds}, {interval_seconds})"
        )
    return _renderer.render(
        "postflight.sh.j2",
        {"timeout_seconds": timeout_seconds, "interval_seconds": interval_seconds},
    )


def installer_start_script(dcos_dir: str) -> str:
    return _renderer.render("dcos-installer.sh.j2", {"dcos_dir": dcos_dir})


def installer_service_unit(start_script: str) -> str:
    return _renderer.render("dcos-installer.service.j2", {"start_script": start_script})
