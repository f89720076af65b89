"""Pressroom content layer — front matter, markdown rendering, post loading."""

from pressroom.content.frontmatter import dump_front_matter, split_front_matter
from pressroom.content.markdown import RenderedMarkdown, render_markdown
from pressroom.content.models import CodeBlock, IndexPage, Post, PostSummary
from pressroom.content.posts import discover_posts, parse_post

__all__ = [
    "CodeBlock",
    "IndexPage",
    "Post",
    "PostSummary",
    "RenderedMarkdown",
    "discover_posts",
    "dump_front_matter",
    "parse_post",
    "render_markdown",
    "split_front_matter",
]
