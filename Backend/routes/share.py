# routes/share.py
"""
Share links for finished quizzes. Social crawlers get the metadata for the
preview card; people following the link land on the quiz list.
"""
from flask import Blueprint, request, jsonify, redirect

share_bp = Blueprint("share", __name__)

CRAWLER_AGENTS = ("facebookexternalhit", "twitterbot", "linkedinbot")


def is_crawler(user_agent: str) -> bool:
    ua = (user_agent or "").lower()
    return any(agent in ua for agent in CRAWLER_AGENTS)


@share_bp.get("/quizzes/<quiz_id>/share")
def share_meta(quiz_id):
    return jsonify({
        "score": request.args.get("score"),
        "accuracy": request.args.get("accuracy"),
        "title": request.args.get("title"),
        "quizId": quiz_id,
        "isCrawler": True,
    }), 200


@share_bp.get("/quizzes/<quiz_id>/share/<title>/<score>/<accuracy>")
def share_landing(quiz_id, title, score, accuracy):
    if is_crawler(request.headers.get("User-Agent", "")):
        return jsonify({}), 200
    return redirect("/quizzes", code=302)
