import uuid
from dataclasses import dataclass, field, asdict

LANGUAGES = ('html', 'css', 'javascript', 'python')


def new_file_id():
    return str(uuid.uuid4())


def infer_language(name):
    lower = name.lower()
    if lower.endswith('.py'):
        return 'python'
    if lower.endswith('.css'):
        return 'css'
    if lower.endswith('.html'):
        return 'html'
    return 'javascript'


def map_language(language):
    """Editor syntax mode for a file language"""
    if language in ('javascript', 'python', 'css'):
        return language
    return 'html'


@dataclass
class ProjectFile:
    name: str
    language: str
    content: str = ''
    id: str = field(default_factory=new_file_id)

    @classmethod
    def create(cls, name, content=''):
        return cls(name=name, language=infer_language(name), content=content)

    @classmethod
    def from_dict(cls, data):
        # KeyError / TypeError here mean a corrupt snapshot
        language = data['language']
        if language not in LANGUAGES:
            raise ValueError(f"Unknown language: {language}")
        return cls(
            id=str(data['id']),
            name=str(data['name']),
            language=language,
            content=str(data.get('content') or ''),
        )

    def to_dict(self):
        return asdict(self)


STARTER_FILES = (
    ('index.html', """<!doctype html>
<html>
  <head>
    <title>MSC Vertex</title>
  </head>
  <body>
    <main>
      <h1>Welcome to MSC Vertex</h1>
      <p>Edit the files, click Run, and view the preview on the right.</p>
      <div id="app"></div>
    </main>
  </body>
</html>"""),
    ('style.css', """body { font-family: Poppins, system-ui, sans-serif; padding: 24px; }
h1 { color: #ff6b35; }
p { color: #444; }"""),
    ('script.js', """const message = 'Hello from MSC Vertex!';
document.querySelector('#app').textContent = message;"""),
    ('main.py', """# Python execution happens in a sandboxed environment.
print("Welcome to MSC Vertex!")
for i in range(3):
    print("Line", i + 1)"""),
)


def default_files():
    """Fresh starter files, each with a new id"""
    return [ProjectFile.create(name, content) for name, content in STARTER_FILES]
