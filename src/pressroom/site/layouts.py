"""Layout set: Jinja2 templates applied to posts, index pages and the feed.

User layouts live in the site's ``_layouts/`` directory as ``<name>.html``
(``<name>.xml`` for the feed) and override the built-in defaults of the same
name. Layouts may ``{% extends "default.html" %}`` one another.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import ChoiceLoader, DictLoader, Environment, FileSystemLoader, Template, select_autoescape

from pressroom.errors import UnknownLayout

_LAYOUT_SUFFIXES = (".html", ".xml")

_DEFAULT_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{% block title %}{{ site.title }}{% endblock %}</title>
  {% if site.description %}<meta name="description" content="{{ site.description }}">{% endif %}
  <link rel="alternate" type="application/atom+xml" href="{{ site.baseurl }}/feed.xml" title="{{ site.title }}">
</head>
<body>
  <header><a href="{{ site.baseurl }}/">{{ site.title }}</a></header>
  <main>
{% block content %}{{ content }}{% endblock %}
  </main>
</body>
</html>
"""

_POST_HTML = """\
{% extends "default.html" %}
{% block title %}{{ page.title }} | {{ site.title }}{% endblock %}
{% block content %}
<article class="post">
  <h1>{{ page.title }}</h1>
  <p class="post-meta">
    <time datetime="{{ page.date.isoformat() }}">{{ page.date.strftime("%b %d, %Y") }}</time>
    {%- for category in page.categories %} <span class="category">{{ category }}</span>{% endfor %}
  </p>
  <div class="post-content">
{{ content }}
  </div>
</article>
{% endblock %}
"""

_INDEX_HTML = """\
{% extends "default.html" %}
{% block content %}
<ul class="post-list">
{% for post in paginator.summaries %}
  <li>
    <time datetime="{{ post.date.isoformat() }}">{{ post.date.strftime("%b %d, %Y") }}</time>
    <h2><a href="{{ post.url }}">{{ post.title }}</a></h2>
    <p>{{ post.excerpt }}</p>
  </li>
{% endfor %}
</ul>
{% if paginator.total_pages > 1 %}
<nav class="pagination">
  {% if paginator.previous_url %}<a href="{{ paginator.previous_url }}">Newer</a>{% endif %}
  <span>Page {{ paginator.number }} of {{ paginator.total_pages }}</span>
  {% if paginator.next_url %}<a href="{{ paginator.next_url }}">Older</a>{% endif %}
</nav>
{% endif %}
{% endblock %}
"""

_FEED_XML = """\
<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>{{ site.title }}</title>
  <link href="{{ site.url }}{{ site.baseurl }}/feed.xml" rel="self"/>
  <link href="{{ site.url }}{{ site.baseurl }}/"/>
  <id>{{ site.url }}{{ site.baseurl }}/</id>
  <updated>{{ updated.isoformat() }}</updated>
  {% if site.author %}<author><name>{{ site.author }}</name></author>{% endif %}
{% for post in posts %}
  <entry>
    <title>{{ post.title }}</title>
    <link href="{{ site.url }}{{ post.url }}"/>
    <id>{{ site.url }}{{ post.url }}</id>
    <updated>{{ post.date.isoformat() }}</updated>
    {%- for category in post.categories %}
    <category term="{{ category }}"/>
    {%- endfor %}
    <summary>{{ post.excerpt }}</summary>
  </entry>
{% endfor %}
</feed>
"""

BUILTIN_LAYOUTS: dict[str, str] = {
    "default.html": _DEFAULT_HTML,
    "post.html": _POST_HTML,
    "index.html": _INDEX_HTML,
    "feed.xml": _FEED_XML,
}


class LayoutSet:
    """The layouts available to a build, by name (template file stem)."""

    def __init__(self, layouts_dir: Path | None = None, builtins: dict[str, str] | None = None) -> None:
        loaders = []
        if layouts_dir is not None and layouts_dir.is_dir():
            loaders.append(FileSystemLoader(str(layouts_dir)))
        loaders.append(DictLoader(BUILTIN_LAYOUTS if builtins is None else builtins))

        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(["html", "xml"]),
            keep_trailing_newline=True,
        )
        self._files = self._index_templates()

    def _index_templates(self) -> dict[str, str]:
        """Map layout name → template filename. User files shadow built-ins."""
        files: dict[str, str] = {}
        for filename in sorted(self.env.list_templates()):
            path = Path(filename)
            if path.suffix in _LAYOUT_SUFFIXES and len(path.parts) == 1:
                files.setdefault(path.stem, filename)
        return files

    @property
    def names(self) -> list[str]:
        return sorted(self._files)

    def __contains__(self, name: object) -> bool:
        return name in self._files

    def resolve(self, name: str) -> Template:
        """Return the compiled template for layout *name*.

        Raises:
            UnknownLayout: if no layout of that name exists.
        """
        filename = self._files.get(name)
        if filename is None:
            raise UnknownLayout(name, self.names)
        return self.env.get_template(filename)

    def render(self, name: str, context: dict[str, Any]) -> str:
        return self.resolve(name).render(context)
