# skills.py
# This is our central "knowledge base" for skills, their spellings and the job roles that need them.

# In MASTER_SKILL_LIST the "key" is the official skill name and the "value" lists
# every accepted way of writing it (case-insensitivity is handled by the matcher,
# except for the spellings in CASE_SENSITIVE_SPELLINGS).
# Both tables can be extended at runtime from JSON files without code changes.

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from config import JOB_ROLES_PATH, SKILL_ALIASES_PATH, load_json_file
from errors import UnknownRoleError

MASTER_SKILL_LIST: Dict[str, List[str]] = {
    # --- Languages ---
    "JavaScript": ["JavaScript", "JS", "ECMAScript", "ES6"],
    "TypeScript": ["TypeScript", "TS"],
    "Python": ["Python", "Python3"],
    "Java": ["Java"],
    "Go": ["Go", "Golang"],
    "Kotlin": ["Kotlin"],
    "Swift": ["Swift"],
    "HTML": ["HTML", "HTML5"],
    "CSS": ["CSS", "CSS3", "Sass", "SCSS"],
    "SQL": ["SQL", "PostgreSQL", "Postgres", "MySQL", "MSSQL", "SQLite"],
    "R": ["R", "RStudio"],

    # --- Frameworks & Libraries ---
    "React": ["React", "React.js", "ReactJS"],
    "Vue": ["Vue", "Vue.js", "VueJS"],
    "Angular": ["Angular", "AngularJS"],
    "Node.js": ["Node.js", "NodeJS", "Node"],
    "Express": ["Express", "Express.js"],
    "Django": ["Django"],
    "Flask": ["Flask"],
    "FastAPI": ["FastAPI"],
    "Spring": ["Spring", "Spring Boot"],
    "React Native": ["React Native"],
    "Flutter": ["Flutter"],
    "Redux": ["Redux"],
    "Tailwind": ["Tailwind", "Tailwind CSS", "TailwindCSS"],
    "Pandas": ["Pandas"],
    "NumPy": ["NumPy"],
    "Scikit-learn": ["Scikit-learn", "sklearn", "scikit learn"],
    "TensorFlow": ["TensorFlow", "TF", "Keras"],
    "PyTorch": ["PyTorch", "Torch"],

    # --- Data & ML ---
    "Machine Learning": ["Machine Learning", "ML"],
    "Deep Learning": ["Deep Learning", "Neural Networks"],
    "Statistics": ["Statistics", "Statistical Analysis", "Statistical Modeling"],
    "Data Visualization": ["Data Visualization", "Data Visualisation", "Matplotlib", "Seaborn"],
    "Excel": ["Excel", "Microsoft Excel", "MS Excel"],
    "Tableau": ["Tableau"],
    "Power BI": ["Power BI", "PowerBI"],
    "MLOps": ["MLOps", "MLflow", "Kubeflow"],
    "NLP": ["NLP", "Natural Language Processing"],

    # --- Infrastructure ---
    "AWS": ["AWS", "Amazon Web Services"],
    "Azure": ["Azure", "Microsoft Azure"],
    "GCP": ["GCP", "Google Cloud", "Google Cloud Platform"],
    "Docker": ["Docker", "Docker Compose"],
    "Kubernetes": ["Kubernetes", "K8s"],
    "Terraform": ["Terraform", "Infrastructure as Code", "IaC"],
    "CI/CD": ["CI/CD", "Continuous Integration", "Continuous Deployment", "GitHub Actions", "Jenkins"],
    "Linux": ["Linux", "Unix", "Bash"],
    "Monitoring": ["Monitoring", "Prometheus", "Grafana", "Datadog"],
    "Git": ["Git", "GitHub", "GitLab", "Bitbucket"],
    "MongoDB": ["MongoDB", "Mongo"],
    "Redis": ["Redis"],
    "REST APIs": ["REST APIs", "REST API", "REST", "RESTful", "RESTful APIs"],
    "GraphQL": ["GraphQL"],
    "Microservices": ["Microservices", "Microservice Architecture"],
    "Testing": ["Testing", "Unit Testing", "Jest", "Pytest", "JUnit", "Cypress"],

    # --- Product & Design ---
    "Agile": ["Agile", "Scrum", "Kanban"],
    "Roadmapping": ["Roadmapping", "Product Roadmap", "Roadmap"],
    "User Research": ["User Research", "User Interviews", "Usability Testing"],
    "Stakeholder Management": ["Stakeholder Management", "Stakeholder Communication"],
    "Analytics": ["Analytics", "Google Analytics", "Mixpanel", "Amplitude"],
    "A/B Testing": ["A/B Testing", "AB Testing", "Experimentation"],
    "JIRA": ["JIRA", "Atlassian JIRA"],
    "Figma": ["Figma"],
    "Sketch": ["Sketch"],
    "Adobe XD": ["Adobe XD", "XD"],
    "Wireframing": ["Wireframing", "Wireframes", "Wireframe"],
    "Prototyping": ["Prototyping", "Prototypes", "Prototype"],
    "Design Systems": ["Design Systems", "Design System"],
    "Accessibility": ["Accessibility", "WCAG", "a11y"],

    # --- Mobile ---
    "iOS": ["iOS", "UIKit", "SwiftUI"],
    "Android": ["Android", "Android SDK", "Jetpack Compose"],

    # --- Core Soft Skills ---
    "Communication": ["Communication", "Verbal Communication", "Written Communication"],
    "Leadership": ["Leadership", "Team Leadership"],
    "Problem Solving": ["Problem Solving", "Analytical Skills"],
}

# Spellings that double as everyday words ("go", "swift", "rest"). They only
# count when written with exactly this capitalisation.
CASE_SENSITIVE_SPELLINGS = frozenset(
    {"Go", "Swift", "R", "TS", "TF", "XD", "Torch", "Sketch", "Excel", "REST"}
)


@dataclass(frozen=True)
class Role:
    id: str
    name: str
    icon: str
    required_skills: Tuple[str, ...]

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "required_skills": list(self.required_skills),
        }


# Role id -> display name, icon key and required skills (declaration order matters:
# it is the order missing skills are reported in).
JOB_ROLES: Dict[str, Role] = {
    role.id: role
    for role in (
        Role(
            "frontend-developer",
            "Frontend Developer",
            "Code",
            ("JavaScript", "TypeScript", "React", "HTML", "CSS", "Redux", "Testing", "Git", "REST APIs", "Accessibility"),
        ),
        Role(
            "backend-developer",
            "Backend Developer",
            "Server",
            ("Node.js", "Python", "SQL", "REST APIs", "Docker", "MongoDB", "Redis", "Microservices", "Git", "AWS"),
        ),
        Role(
            "fullstack-developer",
            "Full Stack Developer",
            "Layers",
            ("JavaScript", "TypeScript", "React", "Node.js", "SQL", "REST APIs", "Docker", "Git", "CSS", "AWS"),
        ),
        Role(
            "data-scientist",
            "Data Scientist",
            "BarChart3",
            ("Python", "SQL", "Machine Learning", "Statistics", "Pandas", "NumPy", "Scikit-learn", "Data Visualization", "Deep Learning", "R"),
        ),
        Role(
            "data-analyst",
            "Data Analyst",
            "PieChart",
            ("SQL", "Excel", "Python", "Tableau", "Power BI", "Statistics", "Data Visualization", "Pandas", "Communication", "A/B Testing"),
        ),
        Role(
            "devops-engineer",
            "DevOps Engineer",
            "Cloud",
            ("Docker", "Kubernetes", "AWS", "Terraform", "CI/CD", "Linux", "Python", "Monitoring", "Git", "GCP"),
        ),
        Role(
            "ml-engineer",
            "ML Engineer",
            "Brain",
            ("Python", "Machine Learning", "Deep Learning", "TensorFlow", "PyTorch", "MLOps", "Docker", "SQL", "NLP", "AWS"),
        ),
        Role(
            "mobile-developer",
            "Mobile Developer",
            "Smartphone",
            ("Swift", "Kotlin", "React Native", "Flutter", "iOS", "Android", "REST APIs", "Git", "Testing", "Java"),
        ),
        Role(
            "product-manager",
            "Product Manager",
            "Briefcase",
            ("Roadmapping", "Agile", "User Research", "Stakeholder Management", "Analytics", "A/B Testing", "JIRA", "SQL", "Communication", "Leadership"),
        ),
        Role(
            "ui-ux-designer",
            "UI/UX Designer",
            "Palette",
            ("Figma", "Sketch", "Adobe XD", "Wireframing", "Prototyping", "User Research", "Design Systems", "Accessibility", "HTML", "CSS"),
        ),
    )
}


def merge_skill_aliases(
    base: Mapping[str, List[str]],
    extra: Mapping[str, List[str]],
) -> Dict[str, List[str]]:
    """Union *extra* spellings into *base*; skill names compare case-insensitively."""
    merged: Dict[str, List[str]] = {name: list(aliases) for name, aliases in base.items()}
    by_lower = {name.lower(): name for name in merged}
    for name, aliases in extra.items():
        if isinstance(aliases, str) or not isinstance(aliases, list):
            raise ValueError(f"Aliases for skill {name!r} must be a list of strings.")
        official = by_lower.setdefault(name.lower(), name)
        current = merged.setdefault(official, [official])
        seen = {alias.lower() for alias in current}
        for alias in aliases:
            alias = str(alias).strip()
            if alias and alias.lower() not in seen:
                seen.add(alias.lower())
                current.append(alias)
    return merged


def load_skill_aliases(path: Optional[str] = None) -> Dict[str, List[str]]:
    """Built-in alias table, extended by the JSON file at *path* (or SKILL_ALIASES_PATH)."""
    path = path or SKILL_ALIASES_PATH
    if not path:
        return merge_skill_aliases(MASTER_SKILL_LIST, {})
    return merge_skill_aliases(MASTER_SKILL_LIST, load_json_file(path))


def load_role_catalog(path: Optional[str] = None) -> Dict[str, Role]:
    """Built-in roles, with roles from the JSON file at *path* (or JOB_ROLES_PATH) added or replaced by id.

    File shape: {"role-id": {"name": ..., "icon": ..., "required_skills": [...]}}
    """
    catalog = dict(JOB_ROLES)
    path = path or JOB_ROLES_PATH
    if not path:
        return catalog
    for role_id, definition in load_json_file(path).items():
        if not isinstance(definition, dict) or not isinstance(definition.get("required_skills"), list):
            raise ValueError(f"Role {role_id!r} needs a 'required_skills' list.")
        catalog[role_id] = Role(
            id=role_id,
            name=str(definition.get("name") or role_id),
            icon=str(definition.get("icon") or "Briefcase"),
            required_skills=tuple(str(skill) for skill in definition["required_skills"]),
        )
    return catalog


def get_role(role_id: str, roles: Optional[Mapping[str, Role]] = None) -> Role:
    catalog = JOB_ROLES if roles is None else roles
    role = catalog.get(role_id)
    if role is None:
        raise UnknownRoleError(role_id)
    return role


def list_roles(roles: Optional[Mapping[str, Role]] = None) -> List[Role]:
    catalog = JOB_ROLES if roles is None else roles
    return list(catalog.values())
