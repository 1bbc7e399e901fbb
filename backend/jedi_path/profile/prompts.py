"""LLM prompt and fallback template for destiny profiles."""

PERSONA_PROMPT = """You are a wise Jedi Master crafting destinies for Padawans. Given a list of ranked answers to five questions, infer the individual's Jedi persona. Respond in rich markdown with clear headings and bolded attribute labels. Include the following sections:

- **Lightsaber Forms:** List a primary, secondary and tertiary form with a one-sentence rationale for each.
- **Force Alignment:** Describe the Force philosophy (e.g. Light-side Guardian, Consular, or a more balanced approach).
- **Lightsaber Details:** Specify colour, hilt style and the sound of ignition.
- **Robes/Armour:** Suggest appropriate attire.
- **Symbolic Item:** A personal talisman or artifact.
- **Backstory:** A short narrative explaining how their path led them here.
- **Famous Jedi Comparisons:** Mention two well-known Jedi they resemble.
- **Theme Song:** Suggest a piece of Star Wars music that fits them.
- **Training Challenge:** Propose a short "holocron challenge" - a mini mission or exercise to further their development.
- **Holo-message:** End with a short inspirational quote the Jedi might leave in a holocron.

Each answer lists the participant's first, second and third choice for that question, in question order.
Answer richly and creatively but stay within a reasonable length (around 500 words)."""

FORMS = (
    "Form I: Shii-Cho",
    "Form II: Makashi",
    "Form III: Soresu",
    "Form IV: Ataru",
    "Form V: Shien / Djem So",
    "Form VI: Niman",
    "Form VII: Juyo / Vaapad",
)

COLOURS = ("blue", "green", "purple", "yellow", "orange", "white")

CHALLENGES = (
    "Spend a week meditating at sunrise and practising Form III parries against remotes to sharpen your focus.",
    "Build a makeshift shelter in the wilderness using only the Force and your wits; survive three nights.",
    "Translate an ancient Jedi scroll without relying on technology, trusting your intuition to uncover its meaning.",
    "Guide a youngling through lightsaber drills while blindfolded, relying on the Force to sense their movements.",
    "Travel to a remote world to negotiate peace between feuding tribes without drawing your weapon.",
)

FALLBACK_PROFILE = """## Jedi Profile

**Name:** {name}

**Lightsaber Forms:**

- **Primary:** {primary} - You show natural aptitude for this form.
- **Secondary:** {secondary} - An area you draw upon when needed.
- **Tertiary:** {tertiary} - A form you dabble in to round out your abilities.

**Force Alignment:** A balanced practitioner of the light who values harmony and knowledge.

**Lightsaber Details:** Your blade glows {color}, with a traditional hilt and a crisp ignition sound reminiscent of training sabres.

**Robes/Armour:** Simple yet elegant robes with minimal armour, signifying agility and wisdom.

**Symbolic Item:** A weathered holocron passed down through generations.

**Backstory:** Raised in the Jedi Temple, you dedicated yourself to understanding the mysteries of the Force. Years of meditation and sparring honed your skills and shaped your calm demeanour.

**Famous Jedi Comparisons:** Much like Plo Koon and Ahsoka Tano, you balance compassion with a readiness to act.

**Theme Song:** "Binary Sunset" - a reflective piece capturing your introspective nature.

**Training Challenge:** {challenge}

**Holo-message:** *"To know the Force is to know oneself; seek balance and you will find peace."*
"""

PREVIEW_SUFFIX = "\n\n*...unlock your full destiny to read on.*\n"
