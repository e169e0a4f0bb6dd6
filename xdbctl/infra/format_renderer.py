import json

import yaml

from xdbctl.core.ports.render import Renderer


class JsonRenderer(Renderer):
    def render(self, data: dict) -> str:
        return json.dumps(data, indent=2, sort_keys=False, ensure_ascii=False)


class YamlRenderer(Renderer):
    def render(self, data: dict) -> str:
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True).rstrip("\n")
