"""Stock testimonials per sector."""

from __future__ import annotations

from ..io.models import Testimonial

PORTRAIT_URL = "https://i.pravatar.cc/150?img={id}"
_WOMEN_PORTRAITS = (1, 5, 9)
_MEN_PORTRAITS = (52, 53, 57)

# (quote, author, role, portrait group)
_Story = tuple[str, str, str, str]

_STORIES: dict[str, tuple[_Story, ...]] = {
    "youth-development": (
        ("My daughter found her voice here. The mentors helped her discover strengths she never knew she had.", "Maria Rodriguez", "Parent", "w"),
        ("This program kept my son off the streets and gave him a future. He's now the first in our family going to college.", "James Wilson", "Parent", "m"),
        ("The skills I learned here, leadership, teamwork and resilience, shaped who I am today.", "Aisha Thompson", "Program Alumni", "w"),
    ),
    "agriculture": (
        ("Their programs helped our family farm stay sustainable for the next generation. We finally have hope for the future.", "Robert Chen", "Family Farmer", "m"),
        ("They connected us with resources and training that transformed how we grow food for our community.", "Sarah Mitchell", "Farm Manager", "w"),
        ("Supporting farmers isn't just about crops. It's about preserving a way of life. They understand that.", "David Hernandez", "Agricultural Partner", "m"),
    ),
    "food-bank": (
        ("When I lost my job, they were there with food for my kids. No judgment, just help when we needed it most.", "Jennifer Adams", "Program Recipient", "w"),
        ("Volunteering here showed me how one meal can restore someone's dignity and hope.", "Marcus Thompson", "Weekly Volunteer", "m"),
        ("They don't just hand out food. They connect families to resources that help them get back on their feet.", "Linda Park", "Social Worker", "w"),
    ),
    "education": (
        ("My students who participate in this program show remarkable improvement in confidence and academic performance.", "Dr. Patricia Moore", "School Principal", "w"),
        ("They gave me a tutor who believed in me when I was ready to drop out. Now I'm graduating with honors.", "Carlos Rivera", "Student", "m"),
        ("The literacy program helped my grandmother finally read to her grandchildren. That gift is priceless.", "Keisha Brown", "Family Member", "w"),
    ),
    "environment": (
        ("We've cleaned over 50 miles of riverbank together. Seeing wildlife return makes every hour worth it.", "Tom Nakamura", "Volunteer Coordinator", "m"),
        ("Their conservation work saved the wetlands behind our school. Now our kids learn science there every week.", "Emily Foster", "Teacher", "w"),
        ("They taught our community that protecting nature and supporting local jobs can go hand in hand.", "Michael Redhawk", "Tribal Council Member", "m"),
    ),
    "animal-welfare": (
        ("They saved Max from a hoarding situation. Three years later, he's the sweetest, most loyal companion I've ever had.", "Jessica Taylor", "Adopter", "w"),
        ("Their low-cost spay program helped us reduce strays in our neighborhood by 70% in just two years.", "Officer Ray Johnson", "Animal Control", "m"),
        ("When I couldn't afford my dog's surgery, they helped. They see animals as family, not just pets.", "Rose Williams", "Pet Owner", "w"),
    ),
    "veterans": (
        ("After three deployments, I was lost. Their transition program gave me purpose and a new career.", "Sergeant Mike Torres", "Army Veteran", "m"),
        ("They understood what I went through without me having to explain. That peer support saved my life.", "Captain Sarah O'Brien", "Marine Veteran", "w"),
        ("My dad finally opened up about his service after joining their group. We're closer now than we've ever been.", "Daniel Washington", "Veteran's Son", "m"),
    ),
    "seniors": (
        ("The daily visits from volunteers are the highlight of my week. They remind me I'm not forgotten.", "Eleanor Patterson", "Program Participant", "w"),
        ("Mom can stay in her home because of their care services. That independence means everything to her.", "Richard Kim", "Family Caregiver", "m"),
        ("Their meals program doesn't just feed me. The delivery person checks on me every day. That's real caring.", "Harold Jenkins", "Meal Recipient", "m"),
    ),
    "healthcare": (
        ("They diagnosed my condition when I had no insurance and nowhere else to turn. They literally saved my life.", "Maria Santos", "Patient", "w"),
        ("In remote villages with no doctors, their mobile clinics are the only healthcare families can access.", "Dr. James Okonkwo", "Field Physician", "m"),
        ("They treated my whole family with dignity, regardless of our ability to pay.", "Fatima Al-Hassan", "Community Member", "w"),
    ),
    "housing": (
        ("Building my own home alongside volunteers taught me skills and gave my kids stability for the first time.", "Tanya Robinson", "Homeowner", "w"),
        ("Watching a family get their keys after months of building together is why I volunteer every Saturday.", "Greg Morrison", "Construction Lead", "m"),
        ("They didn't just give us a house. They gave us a community that welcomed us as neighbors.", "Juan & Maria Lopez", "Partner Family", "w"),
    ),
    "disaster-relief": (
        ("When the flood took everything, they were there within hours with food, water, and hope.", "Barbara Nguyen", "Disaster Survivor", "w"),
        ("Their volunteers helped us rebuild our home in half the time we expected. We couldn't have done it alone.", "Thomas Wright", "Homeowner", "m"),
        ("They stayed long after the news cameras left. That's when communities really need help.", "Mayor Linda Cruz", "Local Official", "w"),
    ),
    "mental-health": (
        ("Their counselors helped me understand that asking for help isn't weakness. It's the bravest thing I've done.", "Alex Morgan", "Program Graduate", "w"),
        ("The support group gave me people who truly understand what living with anxiety feels like.", "Chris Patterson", "Group Member", "m"),
        ("They helped our family communicate again after my son's diagnosis. We're healing together now.", "Diane Foster", "Parent", "w"),
    ),
    "arts-culture": (
        ("The free art classes gave my daughter an outlet and a passion she'll carry her whole life.", "Michelle Watson", "Parent", "w"),
        ("They brought live theater to our rural town for the first time. Our kids saw possibilities they'd never imagined.", "Principal Robert Graves", "School Administrator", "m"),
        ("Their music program helped me process grief in ways therapy never could. Art heals.", "Destiny Jackson", "Program Participant", "w"),
    ),
    "community": (
        ("They showed up for our community when we needed it most, not with empty promises but with real action.", "Amanda Foster", "Community Leader", "w"),
        ("I've watched them turn donated dollars into changed lives, year after year. This is impact you can see.", "Marcus Johnson", "Board Member", "m"),
        ("They do the hard work that doesn't make headlines but makes all the difference to families like mine.", "Rachel Kim", "Program Beneficiary", "w"),
    ),
}


def testimonials_for(sector: str) -> list[Testimonial]:
    """Three testimonials for *sector*, falling back to the community set."""
    stories = _STORIES.get(sector, _STORIES["community"])
    women = iter(_WOMEN_PORTRAITS)
    men = iter(_MEN_PORTRAITS)
    result: list[Testimonial] = []
    for quote, author, role, group in stories:
        portrait_id = next(women) if group == "w" else next(men)
        result.append(
            Testimonial(
                quote=quote,
                author=author,
                role=role,
                portrait=PORTRAIT_URL.format(id=portrait_id),
            )
        )
    return result
