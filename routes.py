# Routes for handling requests
import logging
from functools import wraps

from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from errors import ProfileExists, UsernameTaken
from models import db
from stores import get_stores
from views import COMMENT_MAX_LENGTH, Outcome, ProfileUpdate, is_valid_username

logger = logging.getLogger(__name__)

# Create blueprints for different route categories
main_bp = Blueprint('main', __name__)
auth_bp = Blueprint('auth', __name__)
posts_bp = Blueprint('posts', __name__)
users_bp = Blueprint('users', __name__)

DISPLAY_NAME_MAX_LENGTH = 50
BIO_MAX_LENGTH = 500


def register_error_handlers(app):
    @app.errorhandler(SQLAlchemyError)
    def handle_storage_error(error):
        db.session.rollback()
        logger.error("Storage failure on %s %s", request.method, request.path, exc_info=error)
        return jsonify({"error": "Internal storage error"}), 500


# Authentication helpers

def _request_token():
    token = request.cookies.get(current_app.config['AUTH_COOKIE_NAME'])
    if token:
        return token
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip() or None
    return None


def _load_viewer():
    g.viewer = get_stores().identity.authenticate(_request_token())


def optional_auth(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        _load_viewer()
        return view(*args, **kwargs)
    return wrapper


def require_token(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        _load_viewer()
        if not g.viewer.is_authenticated:
            return jsonify({
                "error": "Authentication required",
                "message": "Send a valid session token as a cookie or bearer header"
            }), 401
        return view(*args, **kwargs)
    return wrapper


def require_profile(view):
    @wraps(view)
    @require_token
    def wrapper(*args, **kwargs):
        if not g.viewer.is_registered:
            return jsonify({
                "error": "Profile required",
                "message": "Create a profile before using this endpoint"
            }), 403
        return view(*args, **kwargs)
    return wrapper


def _page_args(default_limit, max_limit):
    limit = request.args.get('limit', default_limit, type=int)
    offset = request.args.get('offset', 0, type=int)
    return max(1, min(limit, max_limit)), max(0, offset)


def _list_page():
    return _page_args(current_app.config['LIST_DEFAULT_LIMIT'], current_app.config['LIST_MAX_LIMIT'])


def _list_limit():
    limit, _ = _list_page()
    return limit


def _feed_page():
    return _page_args(current_app.config['FEED_DEFAULT_LIMIT'], current_app.config['FEED_MAX_LIMIT'])


def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _valid_text(value, max_length, allow_empty=False):
    if not isinstance(value, str):
        return False
    if not value and not allow_empty:
        return False
    return len(value) <= max_length


# Identity

@auth_bp.route('/me', methods=['GET'])
@require_token
def me():
    """Who the current token belongs to"""
    viewer = g.viewer
    if not viewer.is_registered:
        return jsonify({
            "authenticated": True,
            "registered": False,
            "account": viewer.account_id
        }), 200

    profile = get_stores().graph.profile_summary(viewer.profile)
    return jsonify({"authenticated": True, "registered": True, "profile": profile}), 200


# Own profile

@main_bp.route('/profile', methods=['POST'])
@require_token
def create_profile():
    """Register a profile for the authenticated account"""
    if g.viewer.is_registered:
        return jsonify({"error": "You already have a profile"}), 400

    data = _json_body()
    username = data.get('username')
    display_name = data.get('display_name')
    if not username or not display_name:
        return jsonify({"error": "Username and display_name are required"}), 400

    if not is_valid_username(username):
        return jsonify({"error": "Invalid username format"}), 400

    if not _valid_text(display_name, DISPLAY_NAME_MAX_LENGTH):
        return jsonify({"error": "Invalid display_name"}), 400

    content = get_stores().content
    if content.get_profile_by_username(username) is not None:
        return jsonify({"error": "Username already taken"}), 400

    try:
        profile = content.create_profile(g.viewer.account_id, username, display_name)
    except ProfileExists:
        return jsonify({"error": "You already have a profile"}), 400
    except UsernameTaken:
        return jsonify({"error": "Username already taken"}), 400

    return jsonify({"success": True, "profile": profile.to_dict()}), 201


@main_bp.route('/profile', methods=['PATCH'])
@require_profile
def update_profile():
    """Partially update the current profile"""
    update = ProfileUpdate.from_mapping(_json_body())
    changes = update.changes()

    if 'display_name' in changes and not _valid_text(changes['display_name'], DISPLAY_NAME_MAX_LENGTH):
        return jsonify({"error": "Invalid display_name"}), 400
    if 'bio' in changes and not _valid_text(changes['bio'], BIO_MAX_LENGTH, allow_empty=True):
        return jsonify({"error": "Bio must be at most 500 characters"}), 400
    if 'avatar_url' in changes and changes['avatar_url'] is not None \
            and not isinstance(changes['avatar_url'], str):
        return jsonify({"error": "Invalid avatar_url"}), 400

    get_stores().content.update_profile(g.viewer.profile_id, update)
    return jsonify({"success": True}), 200


# Feed and posts

@main_bp.route('/feed', methods=['GET'])
@optional_auth
def get_feed():
    limit, offset = _feed_page()
    posts = get_stores().feed.get_feed(g.viewer.profile_id, limit, offset)
    return jsonify({"posts": [post.to_dict() for post in posts]}), 200


@posts_bp.route('', methods=['POST'])
@require_profile
def create_post():
    data = _json_body()
    image_url = data.get('image_url')
    if not image_url or not isinstance(image_url, str):
        return jsonify({"error": "image_url is required"}), 400

    caption = data.get('caption') or ''
    if not isinstance(caption, str):
        return jsonify({"error": "caption must be a string"}), 400

    stores = get_stores()
    post = stores.content.create_post(g.viewer.profile_id, image_url, caption)
    if post is None:
        return jsonify({"error": "Failed to create post"}), 400

    view = stores.content.get_post(post.id, g.viewer.profile_id)
    return jsonify({"success": True, "post": view.to_dict()}), 201


@posts_bp.route('/<post_id>', methods=['GET'])
@optional_auth
def get_post(post_id):
    post = get_stores().content.get_post(post_id, g.viewer.profile_id)
    if post is None:
        return jsonify({"error": "Post not found"}), 404
    return jsonify(post.to_dict()), 200


@posts_bp.route('/<post_id>', methods=['DELETE'])
@require_profile
def delete_post(post_id):
    # Missing and not-owned look the same to the caller
    if not get_stores().content.delete_post(post_id, g.viewer.profile_id):
        return jsonify({"error": "Post not found or you are not the author"}), 404
    return jsonify({"success": True}), 200


# Likes

@posts_bp.route('/<post_id>/like', methods=['POST'])
@require_profile
def like_post(post_id):
    content = get_stores().content
    if not content.post_exists(post_id):
        return jsonify({"error": "Post not found"}), 404

    if content.like_post(post_id, g.viewer.profile_id) is Outcome.REJECTED:
        # The post went away between the check and the insert
        return jsonify({"error": "Post not found"}), 404
    return jsonify({"success": True, "liked": True}), 200


@posts_bp.route('/<post_id>/like', methods=['DELETE'])
@require_profile
def unlike_post(post_id):
    get_stores().content.unlike_post(post_id, g.viewer.profile_id)
    return jsonify({"success": True, "liked": False}), 200


@posts_bp.route('/<post_id>/likers', methods=['GET'])
def get_post_likers(post_id):
    content = get_stores().content
    if not content.post_exists(post_id):
        return jsonify({"error": "Post not found"}), 404

    likers = content.get_post_likers(post_id, _list_limit())
    return jsonify({"likers": [profile.to_dict() for profile in likers]}), 200


# Comments

@posts_bp.route('/<post_id>/comments', methods=['GET'])
def get_comments(post_id):
    content = get_stores().content
    if not content.post_exists(post_id):
        return jsonify({"error": "Post not found"}), 404

    limit, offset = _list_page()
    comments = content.get_comments(post_id, limit, offset)
    return jsonify({"comments": [comment.to_dict() for comment in comments]}), 200


@posts_bp.route('/<post_id>/comments', methods=['POST'])
@require_profile
def add_comment(post_id):
    content = get_stores().content
    if not content.post_exists(post_id):
        return jsonify({"error": "Post not found"}), 404

    text = _json_body().get('content')
    if not _valid_text(text, COMMENT_MAX_LENGTH):
        return jsonify({"error": "Comment must be 1-500 characters"}), 400

    comment = content.add_comment(post_id, g.viewer.profile_id, text)
    if comment is None:
        # The post went away between the check and the insert
        return jsonify({"error": "Post not found"}), 404
    return jsonify({"success": True, "comment": comment.to_dict()}), 201


@main_bp.route('/comments/<comment_id>', methods=['DELETE'])
@require_profile
def delete_comment(comment_id):
    if not get_stores().content.delete_comment(comment_id, g.viewer.profile_id):
        return jsonify({"error": "Comment not found or you are not the author"}), 404
    return jsonify({"success": True}), 200


# Users and follows

def _profile_or_404(username):
    profile = get_stores().content.get_profile_by_username(username)
    if profile is None:
        return None, (jsonify({"error": "User not found"}), 404)
    return profile, None


@users_bp.route('/<username>', methods=['GET'])
@optional_auth
def get_user(username):
    profile, error = _profile_or_404(username)
    if error:
        return error
    return jsonify(get_stores().graph.profile_summary(profile, g.viewer.profile_id)), 200


@users_bp.route('/<username>/posts', methods=['GET'])
@optional_auth
def get_user_posts(username):
    profile, error = _profile_or_404(username)
    if error:
        return error

    limit, offset = _feed_page()
    posts = get_stores().feed.get_posts_by_user(profile.id, g.viewer.profile_id, limit, offset)
    return jsonify({"posts": [post.to_dict() for post in posts]}), 200


@users_bp.route('/<username>/follow', methods=['POST'])
@require_profile
def follow_user(username):
    target, error = _profile_or_404(username)
    if error:
        return error

    if target.id == g.viewer.profile_id:
        return jsonify({"error": "Cannot follow yourself"}), 400

    get_stores().graph.follow_user(g.viewer.profile_id, target.id)
    return jsonify({"success": True, "following": True}), 200


@users_bp.route('/<username>/follow', methods=['DELETE'])
@require_profile
def unfollow_user(username):
    target, error = _profile_or_404(username)
    if error:
        return error

    get_stores().graph.unfollow_user(g.viewer.profile_id, target.id)
    return jsonify({"success": True, "following": False}), 200


@users_bp.route('/<username>/followers', methods=['GET'])
def get_followers(username):
    profile, error = _profile_or_404(username)
    if error:
        return error

    followers = get_stores().graph.get_followers(profile.id, _list_limit())
    return jsonify({"followers": [follower.to_dict() for follower in followers]}), 200


@users_bp.route('/<username>/following', methods=['GET'])
def get_following(username):
    profile, error = _profile_or_404(username)
    if error:
        return error

    following = get_stores().graph.get_following(profile.id, _list_limit())
    return jsonify({"following": [followed.to_dict() for followed in following]}), 200
