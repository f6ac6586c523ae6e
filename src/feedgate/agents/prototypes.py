"""
Tag prototypes for semantic tagging.

Each tag is described by a short paragraph of the vocabulary a story on that
topic tends to use. Stories are tagged by embedding similarity to these.
"""

TAG_PROTOTYPES: dict[str, str] = {
    # === Languages ===
    "python": (
        "Python language and its ecosystem: pandas, numpy and scipy for data work, pytorch and "
        "tensorflow for modelling, django, flask and fastapi for web services, pip packages, "
        "jupyter notebooks and automation scripts."
    ),
    "javascript": (
        "JavaScript for browsers and servers: react, vue and angular frontends, node.js and express "
        "backends, npm packages, async/await, DOM APIs and single page applications."
    ),
    "typescript": (
        "TypeScript static typing on top of JavaScript: type definitions, generics, interfaces, "
        "compiler strictness and tooling for large codebases."
    ),
    "rust": (
        "Rust systems programming: ownership and borrowing, memory safety without garbage collection, "
        "cargo crates, webassembly targets and fearless concurrency."
    ),
    "go": (
        "Go language for cloud services: goroutines and channels, microservices, fast builds, "
        "networking tools and distributed infrastructure."
    ),
    # === Web & apps ===
    "web-development": (
        "Building websites and web applications: frontend and backend work, responsive layouts, "
        "browser APIs, full-stack frameworks and user experience."
    ),
    "mobile-development": (
        "Apps for iOS and Android: swift, kotlin, react native, flutter, app store releases and "
        "mobile user interfaces."
    ),
    "api": (
        "Designing and consuming APIs: REST endpoints, GraphQL schemas, authentication tokens, "
        "rate limits, versioning and OpenAPI documentation."
    ),
    # === AI / ML ===
    "llms": (
        "Large language models: GPT-style transformers, prompting, instruction tuning, fine-tuning, "
        "chat assistants, context windows, scaling laws and text generation."
    ),
    "agents": (
        "AI agents that plan and act: tool use, function calling, multi-agent orchestration, "
        "agentic workflows, memory and autonomous task execution."
    ),
    "multimodal": (
        "Models that combine modalities: vision-language models, image captioning, text-to-image "
        "generation, audio and video understanding, CLIP-style joint embeddings."
    ),
    "machine-learning": (
        "Classical machine learning practice: supervised and unsupervised learning, feature "
        "engineering, cross-validation, gradient boosting, evaluation metrics and overfitting."
    ),
    "deep-learning": (
        "Deep neural networks: backpropagation, convolutional and recurrent architectures, "
        "representation learning, GPU training and optimisation tricks."
    ),
    "computer-vision": (
        "Computer vision: image classification, object detection, segmentation, OCR, video "
        "analysis and visual recognition systems."
    ),
    "natural-language-processing": (
        "Natural language processing: text classification, named entities, sentiment, translation, "
        "information extraction, speech and linguistic analysis."
    ),
    "reinforcement-learning": (
        "Reinforcement learning: rewards and policies, Q-learning, policy gradients, environments, "
        "exploration strategies, game playing and control."
    ),
    "robotics": (
        "Robots in the physical world: manipulation, locomotion, motion planning, sensors, ROS, "
        "autonomous navigation and human-robot interaction."
    ),
    "pytorch": (
        "PyTorch framework: tensors, autograd, nn modules, torchvision, distributed training and "
        "model export for deployment."
    ),
    "tensorflow": (
        "TensorFlow and Keras: model building, training on GPUs and TPUs, TensorBoard, "
        "TF Serving and TensorFlow Lite."
    ),
    # === Infrastructure ===
    "cloud-computing": (
        "Cloud platforms and services: AWS, Azure and Google Cloud, serverless functions, managed "
        "databases, migration, cost and multi-cloud strategy."
    ),
    "aws": (
        "Amazon Web Services: EC2, S3, Lambda, Redshift, EMR, Glue, Athena, IAM and analytics "
        "services on AWS."
    ),
    "azure": (
        "Microsoft Azure: virtual machines, Azure functions, Fabric, Synapse, Entra identity and "
        "hybrid cloud deployments."
    ),
    "kubernetes": (
        "Kubernetes and containers: pods, deployments, helm charts, docker images, service meshes "
        "and cluster operations."
    ),
    "devops": (
        "DevOps and platform engineering: CI/CD pipelines, infrastructure as code, observability, "
        "incident response and site reliability."
    ),
    "distributed-systems": (
        "Distributed systems: consensus, replication, partitioning, message queues, consistency "
        "models and fault tolerance at scale."
    ),
    # === Data ===
    "database": (
        "Databases: SQL queries, PostgreSQL and MySQL, indexes, transactions, NoSQL stores, "
        "schema design and query performance."
    ),
    "data-engineering": (
        "Data engineering: ETL and ELT pipelines, warehouses and lakehouses, streaming, batch jobs, "
        "orchestration, data quality and governance."
    ),
    "data-science": (
        "Data science and analytics: statistics, exploratory analysis, visualisation, dashboards, "
        "experiments and data-driven decisions."
    ),
    "business-intelligence": (
        "Business intelligence tools: Power BI reports, Excel models, dashboards, KPIs, semantic "
        "models and self-service analytics."
    ),
    "spark": (
        "Apache Spark: PySpark dataframes, Spark SQL, structured streaming, Databricks clusters and "
        "large-scale data processing."
    ),
    # === Cross-cutting ===
    "security": (
        "Security: vulnerabilities, exploits, malware, encryption, authentication, threat "
        "detection, breaches and defensive practice."
    ),
    "privacy": (
        "Privacy and data protection: GDPR, consent, tracking, anonymisation, surveillance and "
        "personal data regulation."
    ),
    "open-source": (
        "Open source software: GitHub repositories, licences, maintainers, community contributions "
        "and public releases of code or model weights."
    ),
    "hardware": (
        "Hardware and chips: GPUs, CPUs, accelerators, semiconductors, data center hardware and "
        "consumer devices."
    ),
    "startups": (
        "Startups and venture funding: seed and series rounds, valuations, founders, acquisitions "
        "and investor activity."
    ),
    "policy": (
        "Technology policy and regulation: laws, government action, antitrust, AI governance, "
        "compliance and court rulings."
    ),
    "science": (
        "Scientific research beyond computing: physics, biology, chemistry, climate, space and "
        "medicine discoveries."
    ),
    "healthcare": (
        "Technology in healthcare: clinical AI, diagnostics, medical imaging, patient data, drug "
        "discovery and digital health."
    ),
    # === Content types ===
    "tutorial": (
        "Hands-on tutorials and how-to guides: step-by-step instructions, code walkthroughs and "
        "practical examples to follow."
    ),
    "announcement": (
        "Official announcements: product launches, new features, general availability, release "
        "notes and version updates."
    ),
    "research": (
        "Research papers and studies: methods, experiments, benchmarks, results, ablations and "
        "peer-reviewed or preprint findings."
    ),
    "news": (
        "Industry news coverage: reporting on companies, markets, deals, people and current events "
        "in technology."
    ),
    "opinion": (
        "Opinion and analysis: commentary, essays, thought leadership, strategy perspectives and "
        "expert viewpoints."
    ),
    "case-study": (
        "Case studies: how a specific organisation applied a technology, architecture used, "
        "results achieved and lessons learned."
    ),
    # === Organisations ===
    "openai": (
        "OpenAI: ChatGPT, GPT models, the API platform, Sora, safety work and company news."
    ),
    "microsoft": (
        "Microsoft: Copilot, Microsoft 365, Excel, Power BI, Azure, Windows and company strategy."
    ),
    "google": (
        "Google and Alphabet: Gemini, DeepMind, Google Research, Android, Chrome and Google Cloud."
    ),
    "meta": (
        "Meta: Llama models, Facebook, Instagram, WhatsApp, Reality Labs and Meta AI research."
    ),
    "nvidia": (
        "Nvidia: GPUs, CUDA, AI accelerators, data center platforms and earnings."
    ),
    "anthropic": (
        "Anthropic: Claude models, constitutional AI, interpretability and AI safety research."
    ),
    "huggingface": (
        "Hugging Face: the model hub, transformers library, datasets, spaces and open model releases."
    ),
}
