"""
Basic Bracketeer Example

Demonstrates self-closing, enclosing, escaped and nested tags.
"""

import logging
import sys
sys.path.insert(0, '..')

import bracketeer

logging.basicConfig(level=logging.INFO)

engine = bracketeer.create_engine()

SELF_CLOSING = '[badge name="Ada" css=primary /]'


# Register a self-closing tag with defaults
@engine.register("badge")
def badge(attributes, content, tag):
    options = engine.merge_defaults({"name": "guest", "css": ""}, attributes, tag=tag)
    css = f' class="{options["css"]}"' if options["css"] else ""
    return f"<span{css}>{options['name']}</span>"


# Register an enclosing tag that expands tags inside its content
@engine.register("box")
def box(attributes, content, tag):
    return f"<div class=\"box\">{engine.process(content or '')}</div>"


def main():
    print("=== Bracketeer Basic Example ===\n")

    print("1. Self-closing tag:")
    print(f"   {engine.process(SELF_CLOSING)}\n")

    print("2. Enclosing tag with a nested tag:")
    print(f"   {engine.process('[box]Hello [badge /][/box]')}\n")

    print("3. Escaped tag:")
    print(f"   {engine.process('Write [[badge /]] to show a badge.')}\n")

    print("4. Full page render:")
    page = "<p>[box]Welcome[/box]</p>\n<p>Signed, [badge name=\"team\" /]</p>"
    print(engine.render(page))


if __name__ == "__main__":
    main()
