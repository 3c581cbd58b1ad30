# ============================================================================
# Form Data Transformation Tests
# ============================================================================
from app.services.admin import transform_form_data


class TestTransformFormData:
    """Tests for per-kind form normalisation"""

    def test_tags_split_and_empty_values_dropped(self):
        data = transform_form_data({"title": "Algebra", "tags": "maths, form 3, ", "notes": "", "x": None}, "video")

        assert data == {"title": "Algebra", "tags": ["maths", "form 3"]}

    def test_youtube_url_reduced_to_id(self):
        data = transform_form_data({"youtube_video_id": "https://www.youtube.com/watch?v=abc123&t=5"}, "video")
        assert data["youtube_video_id"] == "abc123"

    def test_plain_youtube_id_kept(self):
        data = transform_form_data({"youtube_video_id": "abc123"}, "video")
        assert data["youtube_video_id"] == "abc123"

    def test_user_role_lowercased(self):
        assert transform_form_data({"role": "ADMIN"}, "user")["role"] == "admin"

    def test_institute_code_uppercased(self):
        assert transform_form_data({"code": "hre-01"}, "institute")["code"] == "HRE-01"

    def test_input_not_mutated(self):
        form = {"tags": "a,b"}
        transform_form_data(form, "zone")
        assert form == {"tags": "a,b"}
