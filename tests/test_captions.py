"""
Tests for caption request assembly.
"""
import datetime
import unittest

from photo_organizer.captions import (
    CUSTOM_STYLE, CaptionRequest, build_caption_prompt, extract_hashtags,
    generate_hashtags, sub_categories,
)
from photo_organizer.models import Photo

CREATED = datetime.datetime(2024, 3, 1, 9, 30)
MONDAY = datetime.date(2024, 3, 4)


class TestHashtags(unittest.TestCase):
    """Test cases for hashtag helpers."""

    def test_sub_categories(self):
        self.assertEqual(sub_categories('Performance and Dance'),
                         ['Dance Performance', 'Training', 'Choreography'])
        self.assertEqual(sub_categories('Unknown'), [])

    def test_extract_hashtags(self):
        self.assertEqual(extract_hashtags("#one, two #three,#four"), ["#one", "#three", "#four"])
        self.assertEqual(extract_hashtags(None), [])

    def test_generate_hashtags_order(self):
        """Test category, sub-category, weekday and custom tags in order."""
        tags = generate_hashtags('Fashion and Style', 'Street Style', "#mine extra", for_date=MONDAY).split(' ')

        self.assertEqual(tags[0], '#SignatureStyle')
        self.assertIn('#StreetStyle', tags)
        self.assertIn('#MotivationMonday', tags)
        self.assertEqual(tags[-1], '#mine')
        self.assertLess(tags.index('#StreetWear'), tags.index('#MondayMood'))

    def test_generate_hashtags_without_category(self):
        """Test that weekday tags need a category."""
        self.assertEqual(generate_hashtags(None, None, "#only", for_date=MONDAY), "#only")
        self.assertEqual(generate_hashtags(), "")


class TestCaptionRequest(unittest.TestCase):
    """Test cases for CaptionRequest and the prompt."""

    def test_from_photo_prefills_metadata(self):
        """Test prefilling from a catalogued photo."""
        photo = Photo(id="p", name="p.jpg", original_url="/p.jpg", size_bytes=1, mime_type="image/jpeg",
                      created_at=CREATED, updated_at=CREATED, brands=("Nike", "Zara"),
                      description="Golden hour", location="Miami", hashtags="#beach",
                      scheduled_date=MONDAY)

        request = CaptionRequest.from_photo(photo, language='Spanish')

        self.assertTrue(request.brand_collaboration)
        self.assertEqual(request.brand_name, "Nike")
        self.assertEqual(request.picture_description, "Golden hour")
        self.assertEqual(request.city, "Miami")
        self.assertEqual(request.publish_date, MONDAY)
        self.assertEqual(request.language, 'Spanish')

    def test_custom_style_tone(self):
        request = CaptionRequest(post_style=CUSTOM_STYLE, custom_style="Dreamy")
        self.assertEqual(request.tone, "Dreamy")
        self.assertEqual(CaptionRequest().tone, 'Bold & Unapologetic')

    def test_explicit_hashtags_win(self):
        request = CaptionRequest(main_category='Fashion and Style', hashtags=['#a', '#b'])
        self.assertEqual(request.hashtag_block(), '#a #b')

    def test_prompt_structure(self):
        """Test the sections of the rendered prompt."""
        request = CaptionRequest(creator_name="Luna", brand_collaboration=True, brand_name="Nike",
                                 brand_handle="@nike", discount_code="LUNA10", venue="Club One",
                                 city="Miami", hashtags=['#run'])

        prompt = build_caption_prompt(request)

        self.assertTrue(prompt.startswith("Create an Instagram caption for Luna following this exact structure:"))
        self.assertTrue(prompt.endswith("Generate the caption now:"))
        self.assertIn("- Brand: Nike\n- Instagram Handle: @nike\n- Discount Code: LUNA10\n- Sponsored Tag: #ad",
                      prompt)
        self.assertIn("**EVENT/LOCATION DETAILS:**\n- Venue: Club One\n- City: Miami\n\n", prompt)
        self.assertNotIn("- Event:", prompt)
        self.assertIn("**HASHTAGS TO USE:**\n#run", prompt)
        self.assertIn("follow Luna's signature 3-part structure", prompt)

    def test_prompt_without_brand(self):
        prompt = build_caption_prompt(CaptionRequest())
        self.assertIn("**BRAND COLLABORATION:**\n- No brand collaboration", prompt)


if __name__ == '__main__':
    unittest.main()
