import json
import os
import tomllib
from pathlib import Path


class Configurator:
    """Loads a dict of config from TOML file(s) and behaves like an object, ie config.VALUE"""

    configuration = None

    def __init__(self, **overrides):
        self.configure()
        if overrides:
            self.override(**overrides)

    def configure(self):
        # load default settings
        with open(Path(__file__).parent / "config_default.toml", "rb") as f:
            configuration = tomllib.load(f)

        # override with local settings
        local_settings = os.environ.get("HYDRA_CLIENT_SETTINGS", Path.cwd() / "hydra_client.toml")
        if Path(local_settings).exists():
            with open(local_settings, "rb") as f:
                configuration.update(tomllib.load(f))

        # override with os env settings
        for config_key in configuration:
            if config_key in os.environ:
                value = os.getenv(config_key)
                # Casting env value
                if isinstance(configuration[config_key], dict):
                    value = json.loads(value)
                elif isinstance(configuration[config_key], list):
                    value = value.split(",")
                elif isinstance(configuration[config_key], bool):
                    value = value.lower() in ["true", "1", "t", "y", "yes"]
                elif isinstance(configuration[config_key], int):
                    value = int(value)
                elif isinstance(configuration[config_key], float):
                    value = float(value)
                configuration[config_key] = value

        # Make sure BASE_URL has a scheme
        if not configuration["BASE_URL"].startswith("http"):
            configuration["BASE_URL"] = f"http://{configuration['BASE_URL']}"

        self.configuration = configuration
        self.check()

    def override(self, **kwargs):
        self.configuration.update(kwargs)
        self.check()

    def check(self):
        """Sanity check on config"""
        if self.configuration["MAX_PAGES"] < 0:
            raise ValueError("MAX_PAGES must be 0 (unlimited) or a positive number")
        if not self.configuration["API_PREFIX"].startswith("/"):
            self.configuration["API_PREFIX"] = f"/{self.configuration['API_PREFIX']}"

    @property
    def max_pages(self):
        return self.configuration["MAX_PAGES"] or None

    def __getattr__(self, __name):
        return self.configuration.get(__name)

    @property
    def __dict__(self):
        return self.configuration
