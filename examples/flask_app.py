"""
Flask Integration Example

Shows how to render bracket tags in a Flask web app. Each request builds its
own engine, so handlers never share state between requests.
"""

from flask import Flask, request, jsonify
import sys
sys.path.insert(0, '..')

import bracketeer

app = Flask(__name__)
config = bracketeer.EngineConfig.from_env()


def youtube(attributes, content, tag):
    options = bracketeer.merge_defaults({"id": "", "width": "560"}, attributes)
    return f'<iframe width="{options["width"]}" src="https://www.youtube.com/embed/{options["id"]}"></iframe>'


def quote(attributes, content, tag):
    return f"<blockquote>{content or ''}</blockquote>"


HANDLERS = {"youtube": youtube, "quote": quote}


@app.route("/render", methods=["POST"])
def render():
    """Render the tags in a page body."""
    data = request.get_json()
    text = data.get("text")

    if text is None:
        return jsonify({"error": "No text provided"}), 400

    with bracketeer.create_engine(HANDLERS, config=config) as engine:
        try:
            return jsonify({"html": engine.render(text)})
        except bracketeer.HandlerError as e:
            return jsonify({"error": str(e), "tag": e.tag}), 500


@app.route("/strip", methods=["POST"])
def strip():
    """Remove the tags from a page body."""
    data = request.get_json()
    text = data.get("text")

    if text is None:
        return jsonify({"error": "No text provided"}), 400

    engine = bracketeer.create_engine(HANDLERS, config=config)
    return jsonify({"text": engine.strip_tags(text)})


if __name__ == "__main__":
    print("Starting Flask app on http://localhost:5000")
    print("Try: curl -X POST http://localhost:5000/render -H 'Content-Type: application/json' -d '{\"text\": \"<p>[youtube id=abc /]</p>\"}'")
    app.run(debug=True)
