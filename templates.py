import os

import jinja2


DEFAULT_UI_LANGUAGE = 'english'


class Templates:
    def __init__(self, path):
        self._templates = dict()

        for lang in os.listdir(path):
            lang_path = os.path.join(path, lang)

            if os.path.isdir(lang_path):
                self._templates[lang] = {}

                for item in os.listdir(lang_path):
                    template_path = os.path.join(lang_path, item)

                    if os.path.isfile(template_path):
                        with open(template_path, 'r', encoding='utf-8') as file:
                            tname = os.path.splitext(item)[0]
                            self._templates[lang][tname] = file.read()

    def get_template(self, uilang: str, template_name: str) -> str:
        if template_name in self._templates.get(uilang, {}):
            return self._templates[uilang][template_name]
        # untranslated templates fall back to english
        return self._templates[DEFAULT_UI_LANGUAGE][template_name]

    def render(self, uilang: str, template_name: str, **kwargs) -> str:
        template = jinja2.Template(self.get_template(uilang, template_name), undefined=jinja2.StrictUndefined)
        return template.render(**kwargs)
