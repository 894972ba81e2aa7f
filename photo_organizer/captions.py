"""
Structured caption requests for the external text-generation collaborator.

This module only assembles the request and the prompt; the returned caption
is free text and is handed back to the operator untouched.
"""

import datetime
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .logging_setup import get_logger
from .models import Photo

logger = get_logger(__name__)

HASHTAG_SETS: Dict[str, Dict[str, object]] = {
    'Fashion and Style': {
        'main': ['#SignatureStyle', '#FashionForward', '#StyleIcon', '#TrendSetter', '#FashionInspo'],
        'sub': {
            'Outfit of the Day': ['#OOTD', '#OutfitInspo', '#StyleDaily', '#FashionDaily'],
            'Designer Fashion': ['#DesignerFashion', '#LuxuryStyle', '#HighFashion', '#CoutureStyle'],
            'Street Style': ['#StreetStyle', '#UrbanFashion', '#CasualChic', '#StreetWear'],
        },
    },
    'Body Positivity and Modeling': {
        'main': ['#BodyPositivity', '#SelfLove', '#ConfidenceIsKey', '#BeautifulInside', '#ModelLife'],
        'sub': {
            'Self Love': ['#SelfLoveJourney', '#LoveYourself', '#BodyAcceptance', '#InnerBeauty'],
            'Confidence': ['#ConfidentWoman', '#OwnYourPower', '#StrongWoman', '#Empowered'],
            'Modeling': ['#ModelingLife', '#PhotoShoot', '#BehindTheScenes', '#ModelingWork'],
        },
    },
    'Performance and Dance': {
        'main': ['#DanceLife', '#Performance', '#ArtisticExpression', '#MovementArt', '#DancePassion'],
        'sub': {
            'Dance Performance': ['#DancePerformance', '#StageLife', '#Performer', '#DanceArt'],
            'Training': ['#DanceTraining', '#PracticeTime', '#DanceClass', '#SkillBuilding'],
            'Choreography': ['#Choreography', '#DanceCreation', '#ArtisticVision', '#CreativeProcess'],
        },
    },
    'Lifestyle and Personal': {
        'main': ['#CreatorLife', '#LifestyleBlogger', '#PersonalJourney', '#DailyLife', '#Authentic'],
        'sub': {
            'Daily Life': ['#DailyVibes', '#LifeUpdate', '#PersonalMoments', '#RealLife'],
            'Travel': ['#TravelDiaries', '#Wanderlust', '#ExploreMore', '#TravelGram'],
            'Wellness': ['#WellnessJourney', '#HealthyLiving', '#MindBodySoul', '#SelfCare'],
        },
    },
}

# Keyed by datetime.date.weekday(): Monday == 0
DAILY_HASHTAGS = {
    0: ['#MotivationMonday', '#MondayMood', '#NewWeekNewGoals'],
    1: ['#TummyTuesday', '#TransformationTuesday', '#TuesdayMotivation'],
    2: ['#WisdomWednesday', '#WednesdayWisdom', '#MidweekMotivation'],
    3: ['#ThrowbackThursday', '#ThursdayThoughts', '#AlmostWeekend'],
    4: ['#FlashbackFriday', '#FridayFeeling', '#WeekendReady'],
    5: ['#SelfcareSaturday', '#SaturdayVibes', '#WeekendMood'],
    6: ['#SelfieSunday', '#SundayVibes', '#WeekendMood'],
}

POST_STYLES = [
    'Bold & Unapologetic',
    'Sexy & Provocative',
    'Inspirational & Motivational',
    'Fun & Playful',
    'Elegant & Sophisticated',
    'Authentic & Vulnerable',
    'Custom Style',
]
CUSTOM_STYLE = 'Custom Style'

LANGUAGES = ['English', 'Spanish', 'Spanglish']


def sub_categories(main_category: str) -> List[str]:
    category = HASHTAG_SETS.get(main_category)
    if not category:
        return []
    return list(category['sub'])


def extract_hashtags(text: Optional[str]) -> List[str]:
    """Pick the #tags out of free text separated by spaces or commas."""
    if not text:
        return []
    return [token for token in re.split(r'[\s,]+', text) if token.startswith('#')]


def generate_hashtags(main_category: Optional[str] = None, sub_category: Optional[str] = None,
                      custom_hashtags: Optional[str] = None,
                      for_date: Optional[datetime.date] = None) -> str:
    """
    Assemble the hashtag block for a caption.

    Category tags come first, then the sub-category, the weekday set for
    ``for_date`` (today by default) and finally the operator's own tags.
    Weekday tags are only added alongside a known category.

    Returns:
        Space separated hashtags
    """
    hashtags: List[str] = []
    category = HASHTAG_SETS.get(main_category or '')
    if category:
        hashtags.extend(category['main'])
        hashtags.extend(category['sub'].get(sub_category or '', []))
        day = for_date or datetime.date.today()
        hashtags.extend(DAILY_HASHTAGS[day.weekday()])
    hashtags.extend(extract_hashtags(custom_hashtags))
    return ' '.join(hashtags)


@dataclass
class CaptionRequest:
    """Everything the caption collaborator is told about a post."""
    language: str = 'English'
    post_style: str = POST_STYLES[0]
    custom_style: str = ''
    creator_name: str = 'the creator'
    # Brand collaboration
    brand_collaboration: bool = False
    brand_name: str = ''
    brand_handle: str = ''
    discount_code: str = ''
    sponsored_tag: str = '#ad'
    # Content details
    picture_description: str = ''
    event_name: str = ''
    venue: str = ''
    city: str = ''
    country: str = ''
    tagged_people: str = ''
    community_tags: str = ''
    # Hashtags
    main_category: str = ''
    sub_category: str = ''
    custom_hashtags: str = ''
    publish_date: Optional[datetime.date] = None
    hashtags: List[str] = field(default_factory=list)

    @classmethod
    def from_photo(cls, photo: Photo, **overrides) -> 'CaptionRequest':
        """Prefill a request from a photo's editorial metadata."""
        values = dict(
            picture_description=photo.description or '',
            city=photo.location or '',
            custom_hashtags=photo.hashtags or '',
            publish_date=photo.scheduled_date,
        )
        if photo.brands:
            values['brand_collaboration'] = True
            values['brand_name'] = photo.brands[0]
        values.update(overrides)
        return cls(**values)

    @property
    def tone(self) -> str:
        return self.custom_style if self.post_style == CUSTOM_STYLE else self.post_style

    def hashtag_block(self) -> str:
        if self.hashtags:
            return ' '.join(self.hashtags)
        return generate_hashtags(self.main_category, self.sub_category,
                                 self.custom_hashtags, self.publish_date)


def build_caption_prompt(request: CaptionRequest) -> str:
    """
    Render a CaptionRequest as the structured prompt sent to the collaborator.

    Args:
        request: Caption request

    Returns:
        Prompt text
    """
    if request.brand_collaboration:
        brand_section = '\n'.join([
            f"- Brand: {request.brand_name}",
            f"- Instagram Handle: {request.brand_handle}",
            f"- Discount Code: {request.discount_code}",
            f"- Sponsored Tag: {request.sponsored_tag}",
        ])
    else:
        brand_section = "- No brand collaboration"

    location_lines = [
        f"- {label}: {value}"
        for label, value in (('Event', request.event_name), ('Venue', request.venue),
                             ('City', request.city), ('Country', request.country))
        if value
    ]

    name = request.creator_name
    sections = [
        f"Create an Instagram caption for {name} following this exact structure:",
        "**BASIC SETTINGS:**\n"
        f"- Language: {request.language}\n"
        f"- Post Style/Tone: {request.tone}",
        f"**BRAND COLLABORATION:**\n{brand_section}",
        f"**PICTURE DESCRIPTION:**\n{request.picture_description}",
        "**EVENT/LOCATION DETAILS:**\n" + '\n'.join(location_lines),
        f"**TAGGED PEOPLE:**\n{request.tagged_people}",
        f"**COMMUNITY TAGS:**\n{request.community_tags}",
        f"**CAPTION STRUCTURE (MANDATORY - follow {name}'s signature 3-part structure):**\n"
        "1. **Opening Hook** (1-2 sentences that grab attention immediately)\n"
        "2. **Main Content** (2-3 sentences about the photo/experience/message)\n"
        "3. **Call to Action/Question** (1 sentence engaging the audience)",
        "**FORMATTING REQUIREMENTS:**\n"
        "- Use bullet points (•) as separators between sections\n"
        f"- Keep it authentic to {name}'s voice\n"
        "- Include emojis naturally throughout\n"
        "- End with the generated hashtags",
        f"**HASHTAGS TO USE:**\n{request.hashtag_block()}",
        "**ADDITIONAL NOTES:**\n"
        "- Make it feel personal and authentic\n"
        "- Keep a confident, empowering tone\n"
        "- If it's a brand collaboration, integrate it naturally\n"
        "- Keep the total character count Instagram-friendly\n"
        "- Use line breaks for better readability",
        "Generate the caption now:",
    ]
    prompt = '\n\n'.join(sections)
    logger.debug(f"Built caption prompt ({len(prompt)} chars, language={request.language})")
    return prompt
