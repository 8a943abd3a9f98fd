import pytest

from shelf.models.category import Category
from shelf.models.media import Book, Movie, TvShow
from shelf.services import category_service


@pytest.fixture
def tree(user):
    fiction = category_service.create_category(user.id, "Fiction")
    fantasy = category_service.create_category(user.id, "Fantasy", fiction.id)
    high = category_service.create_category(user.id, "High Fantasy", fantasy.id)
    non_fiction = category_service.create_category(user.id, "Non-Fiction")
    return {"fiction": fiction, "fantasy": fantasy, "high": high, "non_fiction": non_fiction}


class TestCreate:
    def test_create_root(self, logged_in_client, user):
        resp = logged_in_client.post("/categories/", json={"name": "Fiction"})
        assert resp.status_code == 201
        data = resp.get_json()
        assert data["path"] == "1"
        assert data["level"] == 0
        assert data["parent_id"] is None

    def test_create_child(self, logged_in_client, tree):
        resp = logged_in_client.post(
            "/categories/",
            json={"name": "Urban Fantasy", "parent_id": tree["fantasy"].id},
        )
        assert resp.status_code == 201
        assert resp.get_json()["path"] == "1.1.2"

    def test_create_with_media_type(self, logged_in_client, user):
        resp = logged_in_client.post(
            "/categories/", json={"name": "Film", "media_type": "movie"}
        )
        assert resp.get_json()["media_type"] == "movie"

    @pytest.mark.parametrize("body", [{}, {"name": ""}, {"name": None}])
    def test_missing_name(self, logged_in_client, user, body):
        resp = logged_in_client.post("/categories/", json=body)
        assert resp.status_code == 422
        assert "name" in resp.get_json()["errors"]

    def test_whitespace_name(self, logged_in_client, user):
        resp = logged_in_client.post("/categories/", json={"name": "   "})
        assert resp.status_code == 422

    def test_not_json(self, logged_in_client, user):
        resp = logged_in_client.post("/categories/", data="name=Fiction")
        assert resp.status_code == 422

    def test_bad_parent_id(self, logged_in_client, user):
        resp = logged_in_client.post(
            "/categories/", json={"name": "X", "parent_id": "abc"}
        )
        assert resp.status_code == 422
        assert "parent_id" in resp.get_json()["errors"]

    def test_unknown_parent(self, logged_in_client, user):
        resp = logged_in_client.post(
            "/categories/", json={"name": "X", "parent_id": 9999}
        )
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "not_found"

    @pytest.mark.parametrize("name", [5, {"text": "Fiction"}, True])
    def test_non_string_name(self, logged_in_client, user, name):
        resp = logged_in_client.post("/categories/", json={"name": name})
        assert resp.status_code == 422
        assert "name" in resp.get_json()["errors"]
        assert Category.query.count() == 0

    @pytest.mark.parametrize("offset", [0.7, 0.0])
    def test_float_parent_id_rejected(self, logged_in_client, tree, offset):
        before = Category.query.count()
        resp = logged_in_client.post(
            "/categories/",
            json={"name": "X", "parent_id": tree["fiction"].id + offset},
        )
        assert resp.status_code == 422
        assert "parent_id" in resp.get_json()["errors"]
        assert Category.query.count() == before

    @pytest.mark.parametrize("parent_id", [True, "1.0", "-1", " 1", [1]])
    def test_malformed_parent_id_rejected(self, logged_in_client, tree, parent_id):
        resp = logged_in_client.post(
            "/categories/", json={"name": "X", "parent_id": parent_id}
        )
        assert resp.status_code == 422

    def test_string_parent_id_accepted(self, logged_in_client, tree):
        resp = logged_in_client.post(
            "/categories/", json={"name": "X", "parent_id": str(tree["fiction"].id)}
        )
        assert resp.status_code == 201
        assert resp.get_json()["parent_id"] == tree["fiction"].id


class TestUpdate:
    def test_rename_only(self, logged_in_client, tree):
        resp = logged_in_client.patch(
            f"/categories/{tree['fantasy'].id}", json={"name": "Myth"}
        )
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["name"] == "Myth"
        assert data["path"] == "1.1"

    def test_move(self, logged_in_client, tree):
        resp = logged_in_client.patch(
            f"/categories/{tree['fantasy'].id}",
            json={"name": "Fantasy", "parent_id": tree["non_fiction"].id},
        )
        assert resp.status_code == 200
        assert resp.get_json()["path"] == "2.1"
        path = logged_in_client.get(f"/categories/{tree['high'].id}/path").get_json()
        assert [c["path"] for c in path] == ["2", "2.1", "2.1.1"]

    def test_explicit_null_moves_to_root(self, logged_in_client, tree):
        resp = logged_in_client.patch(
            f"/categories/{tree['fantasy'].id}",
            json={"name": "Fantasy", "parent_id": None},
        )
        data = resp.get_json()
        assert data["parent_id"] is None
        assert data["path"] == "3"

    def test_move_into_descendant(self, logged_in_client, tree):
        resp = logged_in_client.patch(
            f"/categories/{tree['fiction'].id}",
            json={"name": "Fiction", "parent_id": tree["high"].id},
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "invalid_operation"

    def test_self_parent(self, logged_in_client, tree):
        resp = logged_in_client.patch(
            f"/categories/{tree['fiction'].id}",
            json={"name": "Fiction", "parent_id": tree["fiction"].id},
        )
        assert resp.status_code == 400

    def test_unknown_category(self, logged_in_client, user):
        resp = logged_in_client.patch("/categories/9999", json={"name": "X"})
        assert resp.status_code == 404


class TestDelete:
    def test_delete_leaf(self, logged_in_client, tree):
        resp = logged_in_client.delete(f"/categories/{tree['high'].id}")
        assert resp.status_code == 200
        assert resp.get_json()["id"] == tree["high"].id
        assert logged_in_client.get(f"/categories/{tree['high'].id}").status_code == 404

    def test_delete_with_children(self, logged_in_client, tree):
        resp = logged_in_client.delete(f"/categories/{tree['fiction'].id}")
        assert resp.status_code == 400
        assert "subcategories" in resp.get_json()["message"]

    def test_delete_with_books(self, logged_in_client, session, user, tree):
        session.add(Book(title="Dune", user_id=user.id, category_id=tree["non_fiction"].id))
        session.commit()
        resp = logged_in_client.delete(f"/categories/{tree['non_fiction'].id}")
        assert resp.status_code == 400
        assert session.get(Category, tree["non_fiction"].id) is not None


class TestReads:
    def test_list(self, logged_in_client, tree):
        resp = logged_in_client.get("/categories/")
        assert [c["path"] for c in resp.get_json()] == ["1", "1.1", "1.1.1", "2"]

    def test_list_includes_item_counts(self, logged_in_client, session, user, tree):
        session.add_all(
            [
                Book(title="Dune", user_id=user.id, category_id=tree["high"].id),
                Movie(title="Alien", user_id=user.id, category_id=tree["high"].id),
                TvShow(title="Cosmos", user_id=user.id, category_id=tree["non_fiction"].id),
            ]
        )
        session.commit()
        data = {c["name"]: c["counts"] for c in logged_in_client.get("/categories/").get_json()}
        assert data["High Fantasy"] == {"books": 1, "movies": 1, "tv_shows": 0}
        assert data["Non-Fiction"] == {"books": 0, "movies": 0, "tv_shows": 1}
        assert data["Fiction"] == {"books": 0, "movies": 0, "tv_shows": 0}

    def test_list_by_media_type(self, logged_in_client, user):
        category_service.create_category(user.id, "Films", media_type="movie")
        category_service.create_category(user.id, "Novels", media_type="book")
        resp = logged_in_client.get("/categories/?media_type=book")
        assert [c["name"] for c in resp.get_json()] == ["Novels"]

    def test_children_of_root(self, logged_in_client, tree):
        resp = logged_in_client.get("/categories/children")
        assert [c["name"] for c in resp.get_json()] == ["Fiction", "Non-Fiction"]

    def test_children_of_parent(self, logged_in_client, tree):
        resp = logged_in_client.get(f"/categories/children?parent_id={tree['fiction'].id}")
        assert [c["name"] for c in resp.get_json()] == ["Fantasy"]

    def test_tree(self, logged_in_client, session, user, tree):
        session.add(Book(title="The Hobbit", user_id=user.id, category_id=tree["high"].id))
        session.commit()
        data = logged_in_client.get("/categories/tree").get_json()
        assert [n["name"] for n in data] == ["Fiction", "Non-Fiction"]
        assert data[0]["total_book_count"] == 1
        assert data[0]["children"][0]["children"][0]["name"] == "High Fantasy"
        assert data[0]["children"][0]["children"][0]["children"] == []
        assert data[1]["children"] == []

    def test_tree_text(self, logged_in_client, tree):
        resp = logged_in_client.get("/categories/tree.txt")
        assert resp.status_code == 200
        assert resp.mimetype == "text/plain"
        assert resp.get_data(as_text=True).splitlines()[1] == "    1.1 Fantasy"

    def test_search(self, logged_in_client, tree):
        resp = logged_in_client.get("/categories/search?q=fantasy")
        assert [c["name"] for c in resp.get_json()] == ["Fantasy", "High Fantasy"]

    def test_search_roots_only(self, logged_in_client, tree):
        resp = logged_in_client.get("/categories/search?parent_id=")
        assert [c["name"] for c in resp.get_json()] == ["Fiction", "Non-Fiction"]

    def test_by_path(self, logged_in_client, tree):
        resp = logged_in_client.get("/categories/by-path/1.1.1")
        assert resp.get_json()["name"] == "High Fantasy"
        assert logged_in_client.get("/categories/by-path/7").status_code == 404

    def test_get(self, logged_in_client, tree):
        resp = logged_in_client.get(f"/categories/{tree['fantasy'].id}")
        assert resp.get_json()["name"] == "Fantasy"

    def test_path(self, logged_in_client, tree):
        resp = logged_in_client.get(f"/categories/{tree['high'].id}/path")
        assert [c["name"] for c in resp.get_json()] == [
            "Fiction",
            "Fantasy",
            "High Fantasy",
        ]

    def test_path_of_missing_category_is_empty(self, logged_in_client, user):
        resp = logged_in_client.get("/categories/9999/path")
        assert resp.status_code == 200
        assert resp.get_json() == []

    def test_paths_batch(self, logged_in_client, tree):
        ids = [tree["fiction"].id, tree["high"].id, 9999]
        resp = logged_in_client.post("/categories/paths", json={"ids": ids})
        data = resp.get_json()
        assert set(data) == {str(tree["fiction"].id), str(tree["high"].id)}
        assert data[str(tree["high"].id)]["path"] == "1.1.1"

    def test_paths_batch_requires_list(self, logged_in_client, user):
        resp = logged_in_client.post("/categories/paths", json={"ids": "1"})
        assert resp.status_code == 422
